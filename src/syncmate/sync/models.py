"""Data contracts for the sync orchestration engine.

- ``Document``: Protocol for an editor document (external, read-only).
- ``FileDocument`` / ``DirectoryDocument``: concrete documents for
  on-disk files and whole-directory syncs.
- ``SyncTrigger``: Event source tag carried by every sync request.
- ``SkipReason`` / ``SkippedSource``: Why a document was left out.
- ``FilterResult``: Output of one filter pass.
- ``SyncOutcome`` / ``SyncResult``: Terminal state of one orchestration.

Pydantic models are frozen (immutable).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

ROOT_SENTINEL = "./"


@runtime_checkable
class Document(Protocol):
    """An editor document as seen by the sync core.

    The editor owns the lifecycle; the core only reads the flags and may
    ask for a save.
    """

    path: str
    is_untitled: bool
    is_dirty: bool

    async def save(self) -> bool:
        """Persist unsaved edits; returns True on success."""
        ...  # pragma: no cover


@dataclass
class FileDocument:
    """A file that exists only on disk (no editor buffer)."""

    path: str
    is_untitled: bool = False
    is_dirty: bool = False

    async def save(self) -> bool:
        return True


@dataclass
class DirectoryDocument(FileDocument):
    """Synthetic document standing in for a whole directory."""


class SyncTrigger(str, Enum):
    """What caused a sync request."""

    COMMAND = "command"
    SAVE = "save"
    FORCED_SAVE = "forced_save"


class SkipReason(str, Enum):
    """Why a document was excluded from a batch."""

    UNTITLED = "untitled"
    OUTSIDE_WORKSPACE = "outside_workspace"
    MISSING = "missing"
    PAUSED = "paused"
    DIRTY = "dirty"


# Reasons that are routine and never logged
SILENT_REASONS = frozenset({SkipReason.UNTITLED, SkipReason.PAUSED})


class SkippedSource(BaseModel):
    """A document the filter left out.

    Attributes:
        path: Absolute path of the document.
        reason: Machine-readable reason.
        message: Human-readable explanation ('' for silent reasons).
    """

    path: str
    reason: SkipReason
    message: str = ""

    model_config = {"frozen": True}

    @property
    def silent(self) -> bool:
        return self.reason in SILENT_REASONS


class FilterResult(BaseModel):
    """Output of one ``SourceFilter.filter()`` pass.

    Attributes:
        paths: Workspace-relative paths to transfer, in input order.
        skipped: Documents that were excluded.
    """

    paths: list[str] = []
    skipped: list[SkippedSource] = []

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.paths


class SyncOutcome(str, Enum):
    """Terminal state of one orchestration."""

    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
    SUPPRESSED = "suppressed"


class SyncResult(BaseModel):
    """Result of one orchestration.

    Attributes:
        outcome: Terminal state.
        paths: The batch that was (or would have been) transferred.
        attempts: Number of executor invocations.
        trigger: What caused the request.
    """

    outcome: SyncOutcome
    paths: list[str] = []
    attempts: int = 0
    trigger: SyncTrigger = SyncTrigger.COMMAND

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.outcome != SyncOutcome.FAILED
