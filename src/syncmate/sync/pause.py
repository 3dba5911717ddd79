"""Pause bookkeeping for the sync orchestrator.

A ``PauseRegistry`` holds the two pieces of mutable state the engine
needs:

* **paused sources** -- absolute paths whose save was triggered by the
  engine itself.  The save will fire the editor's on-save notification,
  and that notification must not start a second sync for the same path.
* **all paused** -- a coarse flag raised while every open document is
  being flushed before a directory sync.  Every sync request handled by
  an orchestrator that shares this registry is dropped while it is set.

Registries are plain objects owned by (or shared between) orchestrators,
so independent workspaces never see each other's pauses.  No locking:
all mutation happens on the event loop thread.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class PauseRegistry:
    """Track paused source paths and the global all-paused flag."""

    def __init__(self) -> None:
        self._paused: set[str] = set()
        self._all_paused = False

    def pause(self, path: str) -> None:
        """Mark *path* as paused (idempotent)."""
        self._paused.add(path)
        logger.debug("Paused %s", path)

    def unpause(self, path: str) -> None:
        """Remove *path* from the paused set; no-op if absent."""
        self._paused.discard(path)
        logger.debug("Unpaused %s", path)

    def is_paused(self, path: str) -> bool:
        return path in self._paused

    @property
    def paused_paths(self) -> frozenset[str]:
        """Snapshot of the currently paused paths."""
        return frozenset(self._paused)

    def set_all_paused(self, value: bool) -> None:
        self._all_paused = value
        logger.debug("All syncs %s", "paused" if value else "resumed")

    def is_all_paused(self) -> bool:
        return self._all_paused

    @asynccontextmanager
    async def paused(self, path: str) -> AsyncIterator[None]:
        """Keep *path* paused for the duration of the block.

        The path is unpaused on every exit, including exceptions.
        """
        self.pause(path)
        try:
            yield
        finally:
            self.unpause(path)

    @asynccontextmanager
    async def all_paused(self) -> AsyncIterator[None]:
        """Raise the all-paused flag for the duration of the block."""
        self.set_all_paused(True)
        try:
            yield
        finally:
            self.set_all_paused(False)
