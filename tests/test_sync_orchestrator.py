"""Tests for SyncOrchestrator.

Covers:
- Retry loop re-sending the identical batch
- Quiet mode and declined retries
- Executors that raise
- Directory sync, including the dirty-mode all-paused window
- Suppression and skipping of empty requests
- The delayed "Done" status after the executor drains
"""

from __future__ import annotations

import pytest
from conftest import FakeDocument, FakeExecutor

from syncmate.config_schema import SyncConfig
from syncmate.sync.models import SyncOutcome, SyncTrigger
from syncmate.sync.orchestrator import RETRY_PROMPT, SyncOrchestrator
from syncmate.sync.pause import PauseRegistry


def _docs(workspace, *names):
    return [FakeDocument(str(workspace / name)) for name in names]


# ---------------------------------------------------------------------------
# sync()
# ---------------------------------------------------------------------------


class TestSync:
    """The retry state machine."""

    async def test_success_reports_completed(self, make_orchestrator, host, executor):
        orch = make_orchestrator()

        result = await orch.sync(["a.txt", "b.txt"])

        assert result.outcome == SyncOutcome.COMPLETED
        assert result.attempts == 1
        assert executor.calls == [["a.txt", "b.txt"]]
        assert host.statuses == ["Syncing 2 items", "Completed 2 items"]

    async def test_retry_resends_identical_batch(self, workspace, host):
        executor = FakeExecutor([False, True])
        host.confirm_answers = [True]
        orch = SyncOrchestrator(
            SyncConfig(), str(workspace), host, executor, done_delay=0
        )

        result = await orch.sync(["a.txt", "b.txt"])

        assert result.outcome == SyncOutcome.COMPLETED
        assert result.attempts == 2
        assert executor.calls == [["a.txt", "b.txt"], ["a.txt", "b.txt"]]
        assert host.confirms == [(RETRY_PROMPT, "Retry")]
        assert host.statuses[-1] == "Completed 2 items"

    async def test_declined_retry_fails(self, workspace, host):
        executor = FakeExecutor([False])
        host.confirm_answers = [False]
        orch = SyncOrchestrator(
            SyncConfig(), str(workspace), host, executor, done_delay=0
        )

        result = await orch.sync(["a.txt"])

        assert result.outcome == SyncOutcome.FAILED
        assert not result.success
        assert executor.calls == [["a.txt"]]
        assert host.statuses[-1] == "Failed"

    async def test_quiet_mode_never_prompts(self, workspace, host):
        executor = FakeExecutor([False])
        orch = SyncOrchestrator(
            SyncConfig(quiet=True), str(workspace), host, executor, done_delay=0
        )

        result = await orch.sync(["a.txt"])

        assert result.outcome == SyncOutcome.FAILED
        assert host.confirms == []
        assert host.statuses == ["Syncing 1 item", "Failed"]

    async def test_executor_exception_counts_as_failure(self, workspace, host):
        class ExplodingExecutor(FakeExecutor):
            async def transfer(self, paths):
                raise RuntimeError("ssh died")

        orch = SyncOrchestrator(
            SyncConfig(quiet=True),
            str(workspace),
            host,
            ExplodingExecutor(),
            done_delay=0,
        )

        result = await orch.sync(["a.txt"])

        assert result.outcome == SyncOutcome.FAILED

    async def test_empty_batch_is_rejected(self, make_orchestrator, executor):
        orch = make_orchestrator()
        with pytest.raises(ValueError, match="empty batch"):
            await orch.sync([])
        assert executor.calls == []

    async def test_trigger_is_carried_on_result(self, make_orchestrator):
        orch = make_orchestrator()
        result = await orch.sync(["a.txt"], trigger=SyncTrigger.SAVE)
        assert result.trigger == SyncTrigger.SAVE


# ---------------------------------------------------------------------------
# sync_documents()
# ---------------------------------------------------------------------------


class TestSyncDocuments:
    """Filtering front-end and suppression rules."""

    async def test_eligible_documents_are_transferred(
        self, make_orchestrator, workspace, executor
    ):
        orch = make_orchestrator()

        result = await orch.sync_documents(_docs(workspace, "a.txt", "src/app.py"))
        await orch.wait_idle()

        assert result.outcome == SyncOutcome.COMPLETED
        assert executor.calls == [["a.txt", "src/app.py"]]

    async def test_no_documents_is_suppressed(self, make_orchestrator, executor):
        orch = make_orchestrator()

        result = await orch.sync_documents([])

        assert result.outcome == SyncOutcome.SUPPRESSED
        assert executor.calls == []

    async def test_all_paused_drops_request(
        self, make_orchestrator, workspace, executor
    ):
        pause = PauseRegistry()
        pause.set_all_paused(True)
        orch = make_orchestrator(pause=pause)

        result = await orch.sync_documents(_docs(workspace, "a.txt"))

        assert result.outcome == SyncOutcome.SUPPRESSED
        assert executor.calls == []

    async def test_fully_filtered_batch_is_skipped(
        self, make_orchestrator, workspace, host, executor
    ):
        orch = make_orchestrator()
        docs = [FakeDocument(str(workspace / "a.txt"), is_untitled=True)]

        result = await orch.sync_documents(docs)

        assert result.outcome == SyncOutcome.SKIPPED
        assert executor.calls == []
        assert host.statuses == []

    async def test_done_status_after_drain(
        self, make_orchestrator, workspace, host, executor
    ):
        orch = make_orchestrator()

        await orch.sync_documents(_docs(workspace, "a.txt"))
        await orch.wait_idle()

        assert executor.drain_count == 1
        assert host.statuses[-1] == "Done"

    async def test_drain_watcher_can_be_disabled(
        self, make_orchestrator, workspace, host, executor
    ):
        orch = make_orchestrator(watch_drain=False)

        await orch.sync_documents(_docs(workspace, "a.txt"))
        await orch.wait_idle()

        assert executor.drain_count == 0
        assert "Done" not in host.statuses

    async def test_no_done_status_without_transfer(
        self, make_orchestrator, workspace, host, executor
    ):
        orch = make_orchestrator()

        await orch.sync_documents([FakeDocument(str(workspace / "nope.txt"))])
        await orch.wait_idle()

        assert executor.drain_count == 0
        assert "Done" not in host.statuses


# ---------------------------------------------------------------------------
# sync_directory()
# ---------------------------------------------------------------------------


class TestSyncDirectory:
    """Directory requests and the dirty-mode save-all window."""

    async def test_empty_string_syncs_workspace_root(
        self, make_orchestrator, executor
    ):
        orch = make_orchestrator()

        result = await orch.sync_directory("")
        await orch.wait_idle()

        assert result.outcome == SyncOutcome.COMPLETED
        assert executor.calls == [["./"]]

    async def test_subdirectory_is_relative(self, make_orchestrator, executor):
        orch = make_orchestrator()

        await orch.sync_directory("src")

        assert executor.calls == [["src"]]

    async def test_cancelled_prompt_is_skipped(self, make_orchestrator, executor):
        orch = make_orchestrator()

        result = await orch.sync_directory(None)

        assert result.outcome == SyncOutcome.SKIPPED
        assert executor.calls == []

    async def test_missing_directory_is_skipped(self, make_orchestrator, executor):
        orch = make_orchestrator()

        result = await orch.sync_directory("does/not/exist")

        assert result.outcome == SyncOutcome.SKIPPED
        assert executor.calls == []

    async def test_without_dirty_option_nothing_is_saved(
        self, make_orchestrator, host
    ):
        orch = make_orchestrator()
        await orch.sync_directory("")
        assert host.save_all_calls == 0

    async def test_dirty_mode_drops_concurrent_requests(
        self, make_orchestrator, workspace, host, executor
    ):
        """Save notifications fired by save-all never reach the executor."""
        orch = make_orchestrator(SyncConfig(dirty=True))
        inner_results = []

        async def _save_all_hook():
            assert orch.pause.is_all_paused()
            inner_results.append(
                await orch.sync_documents(
                    _docs(workspace, "a.txt"), trigger=SyncTrigger.FORCED_SAVE
                )
            )

        host.save_all_hook = _save_all_hook

        result = await orch.sync_directory("")
        await orch.wait_idle()

        assert host.save_all_calls == 1
        assert [r.outcome for r in inner_results] == [SyncOutcome.SUPPRESSED]
        assert result.outcome == SyncOutcome.COMPLETED
        assert executor.calls == [["./"]]
        assert not orch.pause.is_all_paused()

    async def test_save_all_failure_clears_flag(self, make_orchestrator, host, executor):
        orch = make_orchestrator(SyncConfig(dirty=True))

        async def _boom():
            raise OSError("read-only filesystem")

        host.save_all_hook = _boom

        result = await orch.sync_directory("")

        assert result.outcome == SyncOutcome.FAILED
        assert not orch.pause.is_all_paused()
        assert executor.calls == []
        assert host.statuses == ["Failed"]
