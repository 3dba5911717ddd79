"""Core helpers shared between the CLI and MCP server."""

from .async_utils import Debouncer, run_sync
from .executor import RsyncExecutor, TransferExecutor

__all__ = ["Debouncer", "RsyncExecutor", "TransferExecutor", "run_sync"]
