"""Tests for the MCP sync tools, ToolRegistry and ServerContext.

Covers:
- Registry listing, dispatch and error translation
- sync_files / sync_project / sync_directory handlers
- sync_init and sync_status
- ServerContext reload with and without a config file
"""

import mcp.types as types
import pytest
from conftest import FakeExecutor

from syncmate.config_schema import SyncConfig
from syncmate.core.executor import RsyncExecutor
from syncmate.mcp.host import ToolCallHost
from syncmate.mcp.tools import (
    SYNC_SPECS,
    ServerContext,
    ToolRegistry,
    ToolSpec,
    build_error_response,
)


@pytest.fixture
def registry():
    return ToolRegistry(SYNC_SPECS)


@pytest.fixture
def ctx(workspace):
    return ServerContext(
        workspace_root=str(workspace),
        config=SyncConfig(host="h", dest="/d", user="u"),
        executor=FakeExecutor(),
    )


def _text(result: types.CallToolResult) -> str:
    return result.content[0].text


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestToolRegistry:
    def test_lists_all_tools(self, registry):
        names = {tool.name for tool in registry.list_tools()}
        assert names == {
            "sync_files",
            "sync_project",
            "sync_directory",
            "sync_init",
            "sync_status",
        }
        assert registry.tool_count() == 5

    def test_spec_is_frozen(self):
        with pytest.raises(AttributeError):
            SYNC_SPECS[0].handler = None

    async def test_unknown_tool_raises(self, registry, ctx):
        with pytest.raises(ValueError, match="Unknown tool"):
            await registry.call_tool("sync_everything", {}, ctx)

    async def test_unexpected_exception_is_server_error(self, ctx):
        async def _boom(ctx, args):
            raise RuntimeError("kaboom")

        spec = ToolSpec(
            tool=types.Tool(name="boom", inputSchema={"type": "object"}),
            handler=_boom,
        )
        result = await ToolRegistry([spec]).call_tool("boom", None, ctx)

        assert result.isError
        assert "server_error" in _text(result)
        assert "kaboom" in _text(result)

    def test_error_response_format(self):
        result = build_error_response("sync_failed", "rsync exited", "Retry.")
        assert result.isError
        assert _text(result) == "Error (sync_failed): rsync exited\n\nAction: Retry."


# ---------------------------------------------------------------------------
# Sync handlers
# ---------------------------------------------------------------------------


class TestSyncTools:
    async def test_sync_files_relative_paths(self, registry, ctx):
        result = await registry.call_tool(
            "sync_files", {"paths": ["a.txt", "src/app.py"]}, ctx
        )

        assert not result.isError
        assert ctx.executor.calls == [["a.txt", "src/app.py"]]
        assert result.structuredContent["outcome"] == "completed"
        assert "Completed 2 items" in _text(result)

    async def test_sync_files_skips_outside_paths(self, registry, ctx, tmp_path):
        outside = tmp_path / "elsewhere.txt"
        outside.write_text("x")

        result = await registry.call_tool(
            "sync_files", {"paths": [str(outside)]}, ctx
        )

        assert result.structuredContent["outcome"] == "skipped"
        assert ctx.executor.calls == []

    async def test_sync_files_rejects_prefix_sibling(self, registry, ctx, workspace):
        sibling = workspace.parent / f"{workspace.name}-secrets"
        sibling.mkdir()
        (sibling / "key.pem").write_text("secret")

        result = await registry.call_tool(
            "sync_files", {"paths": [f"../{workspace.name}-secrets/key.pem"]}, ctx
        )

        assert result.structuredContent["outcome"] == "skipped"
        assert ctx.executor.calls == []

    @pytest.mark.parametrize("args", [{}, {"paths": []}, {"paths": "a.txt"}])
    async def test_sync_files_validates_paths(self, registry, ctx, args):
        result = await registry.call_tool("sync_files", args, ctx)

        assert result.isError
        assert "validation_error" in _text(result)

    async def test_sync_project(self, registry, ctx):
        result = await registry.call_tool("sync_project", {}, ctx)

        assert result.structuredContent["paths"] == ["./"]
        assert ctx.executor.calls == [["./"]]

    async def test_tool_calls_leave_no_drain_watcher(self, registry, ctx):
        result = await registry.call_tool("sync_project", {}, ctx)

        assert ctx.executor.drain_count == 0
        assert "Done" not in _text(result)
        assert ctx.orchestrator(ToolCallHost())._drain_task is None

    async def test_sync_directory(self, registry, ctx):
        await registry.call_tool("sync_directory", {"directory": "src"}, ctx)
        assert ctx.executor.calls == [["src"]]

    async def test_sync_directory_requires_argument(self, registry, ctx):
        result = await registry.call_tool("sync_directory", {}, ctx)
        assert "directory is required" in _text(result)

    async def test_failed_transfer_is_error_without_retry(self, registry, ctx):
        ctx.executor = FakeExecutor([False, True])

        result = await registry.call_tool("sync_project", {}, ctx)

        assert result.isError
        assert "sync_failed" in _text(result)
        assert len(ctx.executor.calls) == 1

    async def test_shared_pause_is_honoured(self, registry, ctx):
        ctx.pause.set_all_paused(True)

        result = await registry.call_tool("sync_project", {}, ctx)

        assert result.structuredContent["outcome"] == "suppressed"
        assert ctx.executor.calls == []

    async def test_unconfigured_workspace(self, registry, workspace):
        ctx = ServerContext(workspace_root=str(workspace))

        result = await registry.call_tool("sync_project", {}, ctx)

        assert result.isError
        assert "not_configured" in _text(result)
        assert "sync_init" in _text(result)


# ---------------------------------------------------------------------------
# init and status
# ---------------------------------------------------------------------------


class TestInitAndStatus:
    async def test_init_creates_config_and_reloads(self, registry, workspace):
        ctx = ServerContext(workspace_root=str(workspace))

        result = await registry.call_tool("sync_init", {}, ctx)

        assert result.structuredContent["created"] is True
        assert ctx.config is not None
        assert isinstance(ctx.executor, RsyncExecutor)

    async def test_init_reports_existing(self, registry, workspace, write_config):
        path = write_config("host: h\n")
        ctx = ServerContext(workspace_root=str(workspace))

        result = await registry.call_tool("sync_init", {}, ctx)

        assert result.structuredContent == {"path": str(path), "created": False}
        assert "Found existing" in _text(result)

    async def test_status_configured(self, registry, ctx):
        ctx.pause.pause("/w/a.txt")

        result = await registry.call_tool("sync_status", {}, ctx)

        data = result.structuredContent
        assert data["configured"] is True
        assert data["paused_sources"] == ["/w/a.txt"]
        assert data["all_paused"] is False
        assert "u@h:/d" in _text(result)

    async def test_status_unconfigured(self, registry, workspace):
        ctx = ServerContext(workspace_root=str(workspace))

        result = await registry.call_tool("sync_status", {}, ctx)

        assert result.structuredContent["configured"] is False
        assert "Configured:  no" in _text(result)


class TestServerContext:
    def test_reload_without_config(self, workspace):
        ctx = ServerContext(workspace_root=str(workspace))
        ctx.reload()
        assert ctx.config is None

    def test_reload_with_config(self, workspace, write_config):
        write_config("host: build01\n")
        ctx = ServerContext(workspace_root=str(workspace))

        ctx.reload()

        assert ctx.config.host == "build01"
        assert isinstance(ctx.executor, RsyncExecutor)
