"""Eligibility filtering for sync candidates.

``SourceFilter`` turns a list of editor documents into the
workspace-relative paths that should be transferred.  Rules are applied
per document in a fixed order and the first match wins:

1. untitled                      -> skip silently
2. outside the workspace root    -> skip (logged)
3. missing on disk               -> skip (logged)
4. paused by the engine          -> skip silently
5. dirty, ``dirty`` option on    -> pause, save in background, include
   dirty, ``dirty`` option off   -> skip (logged)
6. anything else                 -> include

Saves triggered in step 5 run as background tasks; the path stays paused
until the save finishes, whatever its outcome.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable

from syncmate.config_schema import SyncConfig
from syncmate.sync.models import (
    ROOT_SENTINEL,
    Document,
    FilterResult,
    SkippedSource,
    SkipReason,
)
from syncmate.sync.pause import PauseRegistry

logger = logging.getLogger(__name__)


def to_relative(path: str, workspace_root: str) -> str:
    """Map an absolute *path* to a workspace-relative one.

    The root itself maps to ``"./"`` so it can't be confused with an
    empty path.
    """
    rel = os.path.relpath(path, workspace_root)
    if rel == os.curdir:
        return ROOT_SENTINEL
    return rel


class SourceFilter:
    """Apply the eligibility rules to candidate documents.

    Args:
        workspace_root: Absolute path of the workspace.
        config: Active sync configuration (only ``dirty`` is read).
        pause: Registry shared with the owning orchestrator.
    """

    def __init__(
        self,
        workspace_root: str,
        config: SyncConfig,
        pause: PauseRegistry,
    ) -> None:
        self.workspace_root = os.path.normpath(workspace_root)
        self.config = config
        self.pause = pause
        self._saves: set[asyncio.Task] = set()

    def filter(self, documents: Iterable[Document]) -> FilterResult:
        """Return the relative paths to sync plus the skipped documents.

        Must be called from inside a running event loop when the
        ``dirty`` option is set, since dirty documents are saved in
        background tasks.
        """
        paths: list[str] = []
        skipped: list[SkippedSource] = []

        for document in documents:
            reason, message = self._check(document)
            if reason is None:
                paths.append(to_relative(document.path, self.workspace_root))
                continue

            entry = SkippedSource(
                path=document.path, reason=reason, message=message
            )
            if not entry.silent:
                logger.warning("Skipping %s (%s)", document.path, message)
            skipped.append(entry)

        return FilterResult(paths=paths, skipped=skipped)

    def _check(self, document: Document) -> tuple[SkipReason | None, str]:
        path = document.path

        if document.is_untitled:
            return SkipReason.UNTITLED, ""

        if not self._in_workspace(path):
            return (
                SkipReason.OUTSIDE_WORKSPACE,
                f"not in the workspace ({self.workspace_root})",
            )

        if not os.path.exists(path):
            return SkipReason.MISSING, "does not exist"

        if self.pause.is_paused(path):
            return SkipReason.PAUSED, ""

        if document.is_dirty:
            if not self.config.dirty:
                return (
                    SkipReason.DIRTY,
                    'dirty (unsaved) - set "dirty: true" to sync dirty files',
                )
            self._start_save(document)

        return None, ""

    def _in_workspace(self, path: str) -> bool:
        # Compare on a separator boundary: "/w/project-old" is not inside "/w/project"
        path = os.path.normpath(path)
        root = self.workspace_root
        return path == root or path.startswith(root.rstrip(os.sep) + os.sep)

    def _start_save(self, document: Document) -> None:
        # Pause before the save is scheduled so the on-save notification it
        # fires can never race ahead of the pause.
        self.pause.pause(document.path)
        logger.info("Saving dirty file %s (dirty)", document.path)
        task = asyncio.create_task(self._save_and_unpause(document))
        self._saves.add(task)
        task.add_done_callback(self._saves.discard)

    async def _save_and_unpause(self, document: Document) -> None:
        async with self.pause.paused(document.path):
            try:
                saved = await document.save()
            except Exception:
                logger.warning("Failed to save %s", document.path, exc_info=True)
                return
            if saved is False:
                logger.warning("Save reported failure for %s", document.path)

    @property
    def pending_saves(self) -> int:
        return len(self._saves)

    async def wait_for_saves(self) -> None:
        """Wait for every save this filter has started."""
        if self._saves:
            await asyncio.gather(*list(self._saves))
