"""Wire the sync engine into an editor host.

``activate()`` loads the workspace configuration and registers the
commands below on the host:

- ``syncmate.syncOpenFiles``  -- sync every open document.
- ``syncmate.syncProject``    -- sync the whole workspace.
- ``syncmate.syncDirectory``  -- prompt for a directory and sync it.
- ``syncmate.init``           -- create a starter config file.

With ``onSave`` enabled, saved documents are collected by a debouncer
and synced in one batch.  Without a usable configuration the three sync
commands are still registered, but only offer to create the config.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from typing import Any

from .config import ConfigError, load_config
from .config_loader import ensure_config
from .config_schema import SyncConfig
from .core.async_utils import Debouncer
from .core.executor import RsyncExecutor, TransferExecutor, default_rsync
from .host import EditorHost
from .sync.models import Document, SyncOutcome, SyncResult, SyncTrigger
from .sync.orchestrator import SyncOrchestrator
from .sync.pause import PauseRegistry

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "syncmate"
SYNC_COMMANDS = ("syncOpenFiles", "syncProject", "syncDirectory")
INIT_COMMAND = f"{COMMAND_PREFIX}.init"


class SyncExtension:
    """Commands and event handlers for one workspace.

    Args:
        host: The editor host.
        workspace_root: Absolute path of the workspace.
        config: Loaded configuration, or ``None`` when the workspace has
            no usable configuration.
        executor: Transfer executor; defaults to ``RsyncExecutor``.
        pause: Pause registry shared with other orchestrators, if any.
    """

    def __init__(
        self,
        host: EditorHost,
        workspace_root: str,
        config: SyncConfig | None,
        executor: TransferExecutor | None = None,
        pause: PauseRegistry | None = None,
    ) -> None:
        self.host = host
        self.workspace_root = os.path.abspath(workspace_root)
        self.config = config
        self.orchestrator: SyncOrchestrator | None = None
        self.debouncer: Debouncer[Document] | None = None

        if config is not None:
            self.orchestrator = SyncOrchestrator(
                config,
                self.workspace_root,
                host,
                executor
                or RsyncExecutor(config, self.workspace_root, default_rsync()),
                pause=pause,
            )
            self.debouncer = Debouncer(
                self._sync_saved, wait=config.debounce, key=lambda d: d.path
            )

    @property
    def enabled(self) -> bool:
        return self.orchestrator is not None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self) -> None:
        """Register commands (and the on-save handler) on the host."""
        if self.orchestrator is not None:
            handlers: dict[str, Callable[[], Awaitable[Any]]] = {
                "syncOpenFiles": self.sync_open_files,
                "syncProject": self.sync_project,
                "syncDirectory": self.sync_directory,
            }
            for name in SYNC_COMMANDS:
                self.host.register_command(
                    f"{COMMAND_PREFIX}.{name}", self._guarded(name, handlers[name])
                )
            if self.config is not None and self.config.on_save:
                logger.info("Sync on save enabled")
                self.host.on_did_save(self.on_save)
        else:
            logger.info("No configuration; sync commands offer to create one")
            for name in SYNC_COMMANDS:
                self.host.register_command(
                    f"{COMMAND_PREFIX}.{name}",
                    self._guarded(name, self.offer_init),
                )

        self.host.register_command(
            INIT_COMMAND, self._guarded("init", self.init_config)
        )

    def _guarded(
        self, name: str, handler: Callable[[], Awaitable[Any]]
    ) -> Callable[[], Awaitable[Any]]:
        async def run() -> Any:
            try:
                return await handler()
            except Exception as exc:
                logger.exception("Command %s failed", name)
                self.host.show_message(f"syncmate {name} failed: {exc}", "error")
                return None

        return run

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def sync_open_files(self) -> SyncResult:
        return await self._require().sync_documents(self.host.text_documents())

    async def sync_project(self) -> SyncResult:
        return await self._require().sync_directory("")

    async def sync_directory(self) -> SyncResult:
        answer = await self.host.prompt(
            f"Directory path to sync (relative to {self.workspace_root})"
        )
        return await self._require().sync_directory(answer)

    def on_save(self, document: Document) -> SyncTrigger | None:
        """Collect a saved document for the next debounced sync.

        The trigger is classified when the notification arrives, because
        the pause that marks a save as engine-initiated is lifted as soon
        as that save completes.  Returns the trigger tag; only ``SAVE``
        notifications are queued.  ``None`` means the notification was
        dropped because syncing is disabled or all paused.
        """
        if self.orchestrator is None or self.debouncer is None:
            return None
        pause = self.orchestrator.pause
        if pause.is_all_paused():
            logger.debug("Save of %s ignored: all paused", document.path)
            return None
        if pause.is_paused(document.path):
            logger.debug(
                "Save of %s ignored (%s)",
                document.path,
                SyncTrigger.FORCED_SAVE.value,
            )
            return SyncTrigger.FORCED_SAVE
        self.debouncer.push(document)
        return SyncTrigger.SAVE

    async def _sync_saved(self, documents: list[Document]) -> SyncResult:
        return await self._require().sync_documents(
            documents, trigger=SyncTrigger.SAVE
        )

    async def init_config(self) -> str:
        path, created = ensure_config(self.workspace_root)
        if not created:
            if await self.host.confirm(
                "Config already exists.", "Edit", level="warning"
            ):
                self.host.open_file(str(path))
            return str(path)
        self.host.open_file(str(path))
        return str(path)

    async def offer_init(self) -> SyncResult:
        if await self.host.confirm(
            "Cannot find syncmate configuration. Do you want to initialize it?",
            "Edit",
            level="warning",
        ):
            self.host.show_message(
                "Reload syncmate after you set up the configuration."
            )
            await self.init_config()
        return SyncResult(outcome=SyncOutcome.SKIPPED)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Flush pending on-save work and wait for the drain watcher."""
        if self.orchestrator is not None:
            # Saves started by the engine can still queue notifications
            await self.orchestrator.source_filter.wait_for_saves()
        if self.debouncer is not None:
            await self.debouncer.flush()
        if self.orchestrator is not None:
            await self.orchestrator.wait_idle()

    def deactivate(self) -> None:
        if self.debouncer is not None:
            self.debouncer.close()

    def _require(self) -> SyncOrchestrator:
        if self.orchestrator is None:
            raise ConfigError("syncmate is not configured for this workspace")
        return self.orchestrator


def activate(
    host: EditorHost,
    workspace_root: str,
    overrides: dict[str, Any] | None = None,
    executor: TransferExecutor | None = None,
    pause: PauseRegistry | None = None,
) -> SyncExtension:
    """Load configuration for *workspace_root* and register commands on *host*.

    Missing or invalid configuration is reported to the host and leaves
    the extension in its "offer to initialize" mode; it never raises.
    """
    logger.info("syncmate starting for %s", workspace_root)
    try:
        config: SyncConfig | None = load_config(workspace_root, overrides)
        logger.info("Config: %s", config.model_dump_json(indent=2))
    except ConfigError as exc:
        logger.warning("Cannot load configuration: %s", exc)
        host.show_message(str(exc), "warning")
        config = None

    extension = SyncExtension(host, workspace_root, config, executor, pause)
    extension.register()
    return extension
