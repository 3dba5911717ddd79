"""Transfer executors.

The orchestrator only needs two things from an executor: ``transfer()``
to push a batch of workspace-relative paths, and ``drained()`` to learn
when every queued transfer has finished.  ``RsyncExecutor`` implements
both on top of the ``rsync`` command line tool.
"""

from __future__ import annotations

import asyncio
import getpass
import logging
import os
import shlex
import subprocess
from collections.abc import Sequence
from typing import Protocol

from ..config_schema import SyncConfig
from .async_utils import run_sync_limited

logger = logging.getLogger(__name__)


class TransferExecutor(Protocol):
    """Boundary the orchestrator consumes."""

    async def transfer(self, paths: Sequence[str]) -> bool:
        """Push *paths*; return True on success."""
        ...  # pragma: no cover

    async def drained(self) -> None:
        """Return once no transfer is queued or running."""
        ...  # pragma: no cover


def build_rsync_command(
    config: SyncConfig, paths: Sequence[str], rsync: str = "rsync"
) -> list[str]:
    """Build the rsync argument vector for *paths*.

    ``-R`` keeps the relative paths intact on the remote side, so
    ``src/a.py`` lands at ``<dest>/src/a.py`` and ``./`` syncs the whole
    local directory.
    """
    user = config.user or getpass.getuser()
    cmd = [rsync, "-avR"]
    cmd.extend(f"--exclude={pattern}" for pattern in config.exclude)
    if config.flags:
        cmd.extend(shlex.split(config.flags))
    cmd.extend(["-e", f"ssh -p {config.port}"])
    cmd.extend(paths)
    cmd.append(f"{user}@{config.host}:{config.dest}")
    return cmd


class RsyncExecutor:
    """Run one rsync process per batch.

    Concurrent batches are bounded by ``config.max_parallel_transfers``.

    Args:
        config: Active sync configuration.
        workspace_root: Directory rsync runs from unless ``config.local``
            is set.
        rsync: Name or path of the rsync binary.
    """

    def __init__(
        self,
        config: SyncConfig,
        workspace_root: str,
        rsync: str = "rsync",
    ) -> None:
        self.config = config
        self.cwd = config.local or workspace_root
        self.rsync = rsync
        self._semaphore = asyncio.Semaphore(config.max_parallel_transfers)
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> int:
        return self._pending

    async def transfer(self, paths: Sequence[str]) -> bool:
        cmd = build_rsync_command(self.config, paths, self.rsync)
        self._pending += 1
        self._idle.clear()
        try:
            if self.config.verbose:
                logger.info("Running: %s", shlex.join(cmd))
            try:
                result = await run_sync_limited(
                    self._semaphore,
                    subprocess.run,
                    cmd,
                    cwd=self.cwd,
                    capture_output=True,
                    text=True,
                )
            except (FileNotFoundError, NotADirectoryError) as exc:
                logger.error("Could not start %s: %s", self.rsync, exc)
                return False

            if self.config.verbose and result.stdout:
                logger.info("rsync output:\n%s", result.stdout.rstrip())
            if result.returncode != 0:
                logger.error(
                    "rsync exited with code %d: %s",
                    result.returncode,
                    result.stderr.strip(),
                )
                return False
            return True
        finally:
            self._pending -= 1
            if self._pending == 0:
                self._idle.set()

    async def drained(self) -> None:
        await self._idle.wait()


def default_rsync() -> str:
    """rsync binary to use; ``SYNCMATE_RSYNC`` overrides the default."""
    return os.getenv("SYNCMATE_RSYNC", "rsync")
