"""Status and report text for sync operations.

- ``pluralize`` -- "1 item" / "3 items".
- ``format_status`` -- prefixed status-bar text.
- ``format_result`` -- one-line summary of a ``SyncResult``.
- ``result_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from collections.abc import Sized
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncResult

from .models import SyncOutcome

STATUS_PREFIX = "syncmate"


def pluralize(
    count: int | Sized, singular: str = "item", plural: str | None = None
) -> str:
    """Return ``"<n> <noun>"`` with the noun pluralized for n != 1.

    *count* may be a number or anything with a length.
    """
    n = count if isinstance(count, int) else len(count)
    noun = singular if n == 1 else (plural or f"{singular}s")
    return f"{n} {noun}"


def format_status(message: str) -> str:
    return f"{STATUS_PREFIX}: {message}"


def format_result(result: SyncResult) -> str:
    """Format a one-line, human-readable summary of *result*."""
    match result.outcome:
        case SyncOutcome.COMPLETED:
            text = f"Completed {pluralize(result.paths)}"
            if result.attempts > 1:
                text += f" after {pluralize(result.attempts, 'attempt')}"
            return text
        case SyncOutcome.FAILED:
            return (
                f"Failed to sync {pluralize(result.paths)} "
                f"({pluralize(result.attempts, 'attempt')})"
            )
        case SyncOutcome.SKIPPED:
            return "Nothing to sync"
        case _:
            return "Sync suppressed while documents are being saved"


def result_to_json(result: SyncResult) -> dict:
    """Convert *result* to a JSON-serializable dict."""
    return {
        "outcome": result.outcome.value,
        "trigger": result.trigger.value,
        "paths": list(result.paths),
        "attempts": result.attempts,
        "success": result.success,
        "summary": format_result(result),
    }
