"""Sync orchestration engine.

Decides which edited documents may be pushed to the remote, batches
them into one transfer, and owns the retry loop when a transfer fails.

Modules:

- ``pause``         -- ``PauseRegistry``: paused paths + all-paused flag.
- ``source_filter`` -- ``SourceFilter``: eligibility rules and save
  triggering.
- ``orchestrator``  -- ``SyncOrchestrator``: transfer, status, retry,
  directory flush-then-sync.
- ``models``        -- documents, triggers, filter and sync results.
- ``reporter``      -- status text and JSON summaries.

Usage example
-------------
::

    from syncmate.core.executor import RsyncExecutor
    from syncmate.host import ConsoleHost
    from syncmate.sync import SyncOrchestrator

    orchestrator = SyncOrchestrator(
        config=config,
        workspace_root="/home/me/project",
        host=ConsoleHost(),
        executor=RsyncExecutor(config, "/home/me/project"),
    )
    result = await orchestrator.sync_directory("src")
"""

from .models import (
    ROOT_SENTINEL,
    DirectoryDocument,
    Document,
    FileDocument,
    FilterResult,
    SkippedSource,
    SkipReason,
    SyncOutcome,
    SyncResult,
    SyncTrigger,
)
from .orchestrator import SyncOrchestrator
from .pause import PauseRegistry
from .reporter import format_result, pluralize, result_to_json
from .source_filter import SourceFilter, to_relative

__all__ = [
    "ROOT_SENTINEL",
    "DirectoryDocument",
    "Document",
    "FileDocument",
    "FilterResult",
    "PauseRegistry",
    "SkipReason",
    "SkippedSource",
    "SourceFilter",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncResult",
    "SyncTrigger",
    "format_result",
    "pluralize",
    "result_to_json",
    "to_relative",
]
