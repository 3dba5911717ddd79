"""MCP tools exposing the sync commands.

Defines five tools:

- ``sync_files``     -- sync the given files.
- ``sync_project``   -- sync the whole workspace.
- ``sync_directory`` -- sync one directory of the workspace.
- ``sync_init``      -- create a starter configuration file.
- ``sync_status``    -- show configuration and pause state.

Each call gets a fresh ``ToolCallHost`` and orchestrator; the pause
registry and executor are shared through ``ServerContext`` so calls
honour each other's pauses.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import mcp.types as types

from ..config import ConfigError, load_config
from ..config_loader import ensure_config
from ..config_schema import SyncConfig
from ..core.executor import RsyncExecutor, TransferExecutor, default_rsync
from ..sync.models import SyncOutcome, SyncResult
from ..sync.orchestrator import SyncOrchestrator
from ..sync.pause import PauseRegistry
from ..sync.reporter import format_result, result_to_json
from .host import ToolCallHost

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared server state
# ---------------------------------------------------------------------------


@dataclass
class ServerContext:
    """State shared by every tool call of one server process."""

    workspace_root: str
    config: SyncConfig | None = None
    executor: TransferExecutor | None = None
    pause: PauseRegistry = field(default_factory=PauseRegistry)

    def reload(self) -> None:
        """(Re)load configuration; leaves ``config`` as None on failure."""
        try:
            self.config = load_config(self.workspace_root)
        except ConfigError as exc:
            logger.warning("Cannot load configuration: %s", exc)
            self.config = None
            return
        self.executor = RsyncExecutor(
            self.config, self.workspace_root, default_rsync()
        )

    def orchestrator(self, host: ToolCallHost) -> SyncOrchestrator:
        if self.config is None or self.executor is None:
            raise ConfigError(
                "syncmate is not configured for this workspace"
            )
        return SyncOrchestrator(
            self.config,
            self.workspace_root,
            host,
            self.executor,
            pause=self.pause,
            watch_drain=False,
        )


# ---------------------------------------------------------------------------
# Error responses
# ---------------------------------------------------------------------------


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_configured, validation_error,
            sync_failed, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take next

    Returns:
        CallToolResult with isError=True
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

ToolHandler = Callable[[ServerContext, dict], Awaitable[types.CallToolResult]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A tool definition paired with its handler."""

    tool: types.Tool
    handler: ToolHandler


class ToolRegistry:
    """Name-indexed tool specs with centralized error translation."""

    def __init__(self, specs: list[ToolSpec]):
        self._specs: dict[str, ToolSpec] = {
            spec.tool.name: spec for spec in specs
        }

    def list_tools(self) -> list[types.Tool]:
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        return len(self._specs)

    async def call_tool(
        self, name: str, arguments: dict | None, ctx: ServerContext
    ) -> types.CallToolResult:
        """Dispatch a tool call.

        Raises:
            ValueError: If *name* is not a registered tool.
        """
        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        try:
            return await spec.handler(ctx, arguments or {})
        except ConfigError as e:
            return build_error_response(
                "not_configured",
                str(e),
                "Call sync_init, edit the created file, then retry.",
            )
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error", str(e), "Check the server log and retry."
            )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _sync_response(
    result: SyncResult, host: ToolCallHost
) -> types.CallToolResult:
    if result.outcome == SyncOutcome.FAILED:
        return build_error_response(
            "sync_failed",
            f"{format_result(result)}\n{host.transcript()}".rstrip(),
            "Check the server log for rsync errors, then call the tool again to retry.",
        )
    text = host.transcript() or format_result(result)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=result_to_json(result),
    )


async def _handle_sync_files(
    ctx: ServerContext, args: dict
) -> types.CallToolResult:
    paths = args.get("paths")
    if not paths or not isinstance(paths, list):
        raise ValueError("paths must be a non-empty list of file paths")
    absolute = [
        os.path.normpath(os.path.join(ctx.workspace_root, str(p)))
        for p in paths
    ]
    host = ToolCallHost(absolute)
    orchestrator = ctx.orchestrator(host)
    result = await orchestrator.sync_documents(host.text_documents())
    return _sync_response(result, host)


async def _handle_sync_project(
    ctx: ServerContext, args: dict
) -> types.CallToolResult:
    host = ToolCallHost()
    result = await ctx.orchestrator(host).sync_directory("")
    return _sync_response(result, host)


async def _handle_sync_directory(
    ctx: ServerContext, args: dict
) -> types.CallToolResult:
    directory = args.get("directory")
    if directory is None:
        raise ValueError("directory is required")
    host = ToolCallHost(answer=str(directory))
    orchestrator = ctx.orchestrator(host)
    result = await orchestrator.sync_directory(await host.prompt("Directory"))
    return _sync_response(result, host)


async def _handle_sync_init(
    ctx: ServerContext, args: dict
) -> types.CallToolResult:
    path, created = ensure_config(ctx.workspace_root)
    ctx.reload()
    verb = "Created" if created else "Found existing"
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text",
                text=f"{verb} configuration at {path}. Edit it to set host and dest.",
            )
        ],
        structuredContent={"path": str(path), "created": created},
    )


async def _handle_sync_status(
    ctx: ServerContext, args: dict
) -> types.CallToolResult:
    configured = ctx.config is not None
    pending = getattr(ctx.executor, "pending", 0)
    paused = sorted(ctx.pause.paused_paths)
    lines = [
        f"Workspace:   {ctx.workspace_root}",
        f"Configured:  {'yes' if configured else 'no'}",
    ]
    if ctx.config is not None:
        target = f"{ctx.config.user or '(current user)'}@{ctx.config.host}:{ctx.config.dest}"
        lines.append(f"Destination: {target}")
    lines.append(f"Pending transfers: {pending}")
    lines.append(f"Paused sources:    {len(paused)}")

    return types.CallToolResult(
        content=[types.TextContent(type="text", text="\n".join(lines))],
        structuredContent={
            "workspace_root": ctx.workspace_root,
            "configured": configured,
            "pending_transfers": pending,
            "paused_sources": paused,
            "all_paused": ctx.pause.is_all_paused(),
        },
    )


_EMPTY_SCHEMA = {"type": "object", "properties": {}, "required": []}


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="sync_files",
            description=(
                "Push the given workspace files to the configured remote "
                "with rsync. Missing files and files outside the workspace "
                "are skipped."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "paths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "File paths, absolute or relative to the workspace root",
                    },
                },
                "required": ["paths"],
            },
        ),
        handler=_handle_sync_files,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_project",
            description="Push the whole workspace to the configured remote.",
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema=_EMPTY_SCHEMA,
        ),
        handler=_handle_sync_project,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_directory",
            description="Push one workspace directory to the configured remote.",
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "directory": {
                        "type": "string",
                        "description": "Directory relative to the workspace root ('' for the root)",
                    },
                },
                "required": ["directory"],
            },
        ),
        handler=_handle_sync_directory,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_init",
            description="Create a starter syncmate configuration in the workspace if none exists.",
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema=_EMPTY_SCHEMA,
        ),
        handler=_handle_sync_init,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_status",
            description="Show configuration, pending transfers and paused sources.",
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema=_EMPTY_SCHEMA,
        ),
        handler=_handle_sync_status,
    ),
]
