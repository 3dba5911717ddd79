"""Sync orchestration: filter, transfer, report, retry.

One ``SyncOrchestrator`` serves one workspace.  A request moves through
this state machine:

::

    Idle --(batch ready)--> Syncing --(success)--> Completed
    Syncing --(failure)--> AwaitingUserDecision
    AwaitingUserDecision --(retry)--> Syncing
    AwaitingUserDecision --(decline, or quiet)--> Failed

A retry re-sends the exact batch that failed; it is never re-filtered.

Alongside individual requests the orchestrator watches the executor's
drain signal and shows a delayed ``Done`` status once every queued
transfer has finished.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from syncmate.config_schema import SyncConfig
from syncmate.sync.models import (
    DirectoryDocument,
    Document,
    SyncOutcome,
    SyncResult,
    SyncTrigger,
)
from syncmate.sync.pause import PauseRegistry
from syncmate.sync.reporter import pluralize
from syncmate.sync.source_filter import SourceFilter

if TYPE_CHECKING:
    from syncmate.core.executor import TransferExecutor
    from syncmate.host import EditorHost

logger = logging.getLogger(__name__)

RETRY_PROMPT = (
    "syncmate failed to sync all sources (see output). "
    "Would you like to retry?"
)


class SyncOrchestrator:
    """Drive sync requests for one workspace.

    Args:
        config: Active sync configuration.
        workspace_root: Absolute path of the workspace.
        host: Editor host used for status, prompts and saving.
        executor: Transfer executor.
        pause: Pause registry; a fresh one is created when omitted.
            Pass a shared registry to make several orchestrators honour
            each other's pauses.
        done_delay: Seconds between the drain signal and the ``Done``
            status.
        watch_drain: Set to False for short-lived orchestrators that
            nobody watches after the request returns.
    """

    def __init__(
        self,
        config: SyncConfig,
        workspace_root: str,
        host: EditorHost,
        executor: TransferExecutor,
        pause: PauseRegistry | None = None,
        done_delay: float = 1.0,
        watch_drain: bool = True,
    ) -> None:
        self.config = config
        self.workspace_root = os.path.normpath(workspace_root)
        self.host = host
        self.executor = executor
        self.pause = pause or PauseRegistry()
        self.done_delay = done_delay
        self.watch_drain = watch_drain
        self.source_filter = SourceFilter(
            self.workspace_root, config, self.pause
        )
        self._drain_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def sync_documents(
        self,
        documents: Iterable[Document] | None,
        trigger: SyncTrigger = SyncTrigger.COMMAND,
    ) -> SyncResult:
        """Filter *documents* and sync whatever is eligible.

        Requests are dropped (not queued) while the registry is
        all-paused.  An empty batch is a silent no-op.
        """
        docs = list(documents or [])
        if not docs or self.pause.is_all_paused():
            logger.debug(
                "Sync request (%s) suppressed: %s",
                trigger.value,
                "all paused" if docs else "no documents",
            )
            return SyncResult(outcome=SyncOutcome.SUPPRESSED, trigger=trigger)

        logger.debug(
            "Sync request (%s) for %s", trigger.value, pluralize(docs, "document")
        )
        result = self.source_filter.filter(docs)
        if result.is_empty:
            return SyncResult(outcome=SyncOutcome.SKIPPED, trigger=trigger)

        outcome = await self.sync(result.paths, trigger=trigger)
        self._watch_drain()
        return outcome

    async def sync_directory(self, relative_dir: str | None = "") -> SyncResult:
        """Sync a workspace directory (``""`` is the whole workspace).

        With the ``dirty`` option set, every open document is saved first
        and all other sync requests are dropped until that save finishes.
        ``None`` means the user cancelled the directory prompt.
        """
        if relative_dir is None:
            return SyncResult(outcome=SyncOutcome.SKIPPED)

        if self.config.dirty:
            try:
                async with self.pause.all_paused():
                    await self.host.save_all()
            except Exception:
                logger.exception("Saving open documents failed")
                self._set_status("Failed")
                return SyncResult(outcome=SyncOutcome.FAILED)

        path = os.path.normpath(os.path.join(self.workspace_root, relative_dir))
        return await self.sync_documents([DirectoryDocument(path)])

    async def sync(
        self,
        batch: Sequence[str],
        trigger: SyncTrigger = SyncTrigger.COMMAND,
    ) -> SyncResult:
        """Transfer *batch*, offering retries on failure.

        Raises:
            ValueError: If *batch* is empty.
        """
        if not batch:
            raise ValueError("Cannot sync an empty batch")

        paths = list(batch)
        attempts = 0
        while True:
            attempts += 1
            self._set_status(f"Syncing {pluralize(paths)}")
            if await self._transfer(paths):
                self._set_status(f"Completed {pluralize(paths)}")
                return SyncResult(
                    outcome=SyncOutcome.COMPLETED,
                    paths=paths,
                    attempts=attempts,
                    trigger=trigger,
                )

            self._set_status("Failed")
            if self.config.quiet or not await self._ask_retry():
                logger.warning(
                    "Sync of %s failed after %s",
                    pluralize(paths),
                    pluralize(attempts, "attempt"),
                )
                return SyncResult(
                    outcome=SyncOutcome.FAILED,
                    paths=paths,
                    attempts=attempts,
                    trigger=trigger,
                )
            logger.info("Retrying sync of %s", pluralize(paths))

    async def wait_idle(self) -> None:
        """Wait for pending saves and the drain watcher to finish."""
        await self.source_filter.wait_for_saves()
        if self._drain_task is not None:
            await self._drain_task

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _transfer(self, paths: list[str]) -> bool:
        try:
            return bool(await self.executor.transfer(paths))
        except Exception:
            logger.exception("Transfer of %s raised", pluralize(paths))
            return False

    async def _ask_retry(self) -> bool:
        try:
            return await self.host.confirm(RETRY_PROMPT, "Retry")
        except Exception:
            logger.exception("Retry prompt failed")
            return False

    def _set_status(self, message: str) -> None:
        logger.info(message)
        self.host.set_status(message)

    def _watch_drain(self) -> None:
        if not self.watch_drain:
            return
        if self._drain_task is not None and not self._drain_task.done():
            return
        self._drain_task = asyncio.create_task(self._announce_drained())

    async def _announce_drained(self) -> None:
        await self.executor.drained()
        logger.info("All sync tasks finished")
        await asyncio.sleep(self.done_delay)
        self._set_status("Done")
