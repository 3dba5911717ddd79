"""Editor host boundary.

``EditorHost`` is everything the sync engine needs from the editor that
embeds it: open documents, save notifications, saving, status and prompt
UI, and command registration.  ``ConsoleHost`` is a terminal
implementation used by the ``syncmate`` command line tool.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TextIO

from .core.async_utils import run_sync
from .sync.models import Document, FileDocument
from .sync.reporter import format_status

logger = logging.getLogger(__name__)

CommandHandler = Callable[[], Awaitable[object]]
SaveHandler = Callable[[Document], object]


class EditorHost(Protocol):
    """Services the sync engine consumes from its host editor."""

    def text_documents(self) -> Sequence[Document]:
        """Currently open documents."""
        ...  # pragma: no cover

    def on_did_save(self, handler: SaveHandler) -> None:
        """Call *handler* with each document after it is saved."""
        ...  # pragma: no cover

    async def save_all(self) -> bool:
        """Save every open document; True when all saves succeeded."""
        ...  # pragma: no cover

    def set_status(self, message: str, timeout: float = 2.0) -> None:
        """Show a transient status message."""
        ...  # pragma: no cover

    def show_message(self, message: str, level: str = "info") -> None:
        """Show a non-blocking notification (info, warning or error)."""
        ...  # pragma: no cover

    async def confirm(
        self, message: str, action: str, level: str = "error"
    ) -> bool:
        """Ask a yes/no question; True when the user picks *action*."""
        ...  # pragma: no cover

    async def prompt(self, message: str) -> str | None:
        """Ask for a line of text; None when the user cancels."""
        ...  # pragma: no cover

    def register_command(self, name: str, handler: CommandHandler) -> None:
        """Expose *handler* as an invocable command."""
        ...  # pragma: no cover

    def open_file(self, path: str) -> None:
        """Open *path* for editing."""
        ...  # pragma: no cover


class ConsoleHost:
    """Terminal host: status on stderr, prompts on stdin.

    Documents are plain files named on the command line, so nothing is
    ever untitled or dirty and ``save_all`` has nothing to do.

    Args:
        documents: Absolute paths treated as the "open" documents.
        interactive: When False, prompts are declined without reading
            stdin.
        stream: Where status and messages are written.
    """

    def __init__(
        self,
        documents: Sequence[str] = (),
        interactive: bool = True,
        stream: TextIO | None = None,
    ) -> None:
        self._documents = [FileDocument(path) for path in documents]
        self.interactive = interactive
        self.stream = stream or sys.stderr
        self.commands: dict[str, CommandHandler] = {}
        self._save_handlers: list[SaveHandler] = []

    def text_documents(self) -> list[FileDocument]:
        return list(self._documents)

    def on_did_save(self, handler: SaveHandler) -> None:
        self._save_handlers.append(handler)

    async def save_all(self) -> bool:
        return True

    def set_status(self, message: str, timeout: float = 2.0) -> None:
        if message:
            print(format_status(message), file=self.stream, flush=True)

    def show_message(self, message: str, level: str = "info") -> None:
        prefix = "" if level == "info" else f"{level.upper()}: "
        print(f"{prefix}{message}", file=self.stream, flush=True)

    async def confirm(
        self, message: str, action: str, level: str = "error"
    ) -> bool:
        if not self.interactive:
            self.show_message(message, level)
            return False
        try:
            answer = await run_sync(input, f"{message} [{action}/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in (action.lower(), "y", "yes")

    async def prompt(self, message: str) -> str | None:
        if not self.interactive:
            return None
        try:
            return await run_sync(input, f"{message}: ")
        except EOFError:
            return None

    def register_command(self, name: str, handler: CommandHandler) -> None:
        self.commands[name] = handler

    def open_file(self, path: str) -> None:
        self.show_message(f"Edit {path} to configure syncmate")

    async def run_command(self, name: str) -> object:
        """Invoke a registered command by name."""
        handler = self.commands.get(name)
        if handler is None:
            raise ValueError(f"Unknown command: {name}")
        return await handler()
