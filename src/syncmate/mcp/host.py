"""Editor host for a single MCP tool call.

There is no editor behind an MCP client: the "open documents" are the
paths named in the tool arguments, status lines are collected into the
tool result, and there is nobody to answer a retry prompt, so prompts
are declined.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..host import CommandHandler, SaveHandler
from ..sync.models import FileDocument


class ToolCallHost:
    """Collects everything the engine reports during one tool call.

    Args:
        documents: Absolute paths treated as open documents.
        answer: Reply to the next ``prompt()`` call.
    """

    def __init__(
        self, documents: Sequence[str] = (), answer: str | None = None
    ) -> None:
        self._documents = [FileDocument(path) for path in documents]
        self._answer = answer
        self.messages: list[str] = []

    def text_documents(self) -> list[FileDocument]:
        return list(self._documents)

    def on_did_save(self, handler: SaveHandler) -> None:
        pass

    async def save_all(self) -> bool:
        return True

    def set_status(self, message: str, timeout: float = 2.0) -> None:
        if message:
            self.messages.append(message)

    def show_message(self, message: str, level: str = "info") -> None:
        prefix = "" if level == "info" else f"{level.capitalize()}: "
        self.messages.append(f"{prefix}{message}")

    async def confirm(
        self, message: str, action: str, level: str = "error"
    ) -> bool:
        self.messages.append(message)
        return False

    async def prompt(self, message: str) -> str | None:
        return self._answer

    def register_command(self, name: str, handler: CommandHandler) -> None:
        pass

    def open_file(self, path: str) -> None:
        self.messages.append(f"Edit {path} to configure syncmate")

    def transcript(self) -> str:
        return "\n".join(self.messages)
