"""MCP server exposing syncmate commands over stdio.

Transport: stdio (JSON-RPC 2.0). Logging goes to a file only, since
stdout carries the protocol.
"""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import mcp.server.stdio
import mcp.types as types
from dotenv import load_dotenv
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import setup_logging
from .tools import SYNC_SPECS, ServerContext, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

server = Server("syncmate")

_context: ServerContext | None = None
_registry = ToolRegistry(SYNC_SPECS)


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def get_context() -> ServerContext:
    """Return the active ServerContext.

    Raises:
        RuntimeError: If the server lifespan has not started.
    """
    if _context is None:
        raise RuntimeError("Server context not initialized.")
    return _context


def set_context(ctx: ServerContext | None) -> None:
    global _context
    _context = ctx


@asynccontextmanager
async def server_lifespan(workspace_root: str) -> AsyncIterator[ServerContext]:
    """Load configuration for *workspace_root* and yield the shared context.

    A missing configuration does not stop the server: the sync tools
    answer with a "call sync_init" error until one exists.
    """
    logger.info("MCP server starting for %s", workspace_root)
    _stderr_print(f"syncmate MCP server starting ({workspace_root})")
    load_dotenv()

    ctx = ServerContext(workspace_root=workspace_root)
    ctx.reload()
    if ctx.config is None:
        _stderr_print("  No configuration found; call sync_init to create one.")
    else:
        _stderr_print(
            f"  Destination: {ctx.config.host}:{ctx.config.dest}"
        )

    yield ctx

    logger.info("MCP server shutting down")
    _stderr_print("syncmate MCP server shutting down.")


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    return _registry.list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Dispatch a tool call through the registry."""
    try:
        return await _registry.call_tool(name, arguments, get_context())
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


async def main(workspace_root: str, log_file: str | None = None) -> None:
    """Run the MCP server with stdio transport."""
    # Must run before stdio_server so nothing reaches stdout
    setup_logging(mode="mcp", log_file=log_file)

    async with server_lifespan(workspace_root) as ctx:
        set_context(ctx)
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="syncmate",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_context(None)


def run() -> None:
    """Entry point: ``syncmate-mcp``."""
    parser = argparse.ArgumentParser(
        description="syncmate MCP server - expose workspace sync as MCP tools",
    )
    parser.add_argument(
        "--workspace",
        default=os.getenv("SYNCMATE_WORKSPACE", os.getcwd()),
        help="Workspace root (default: $SYNCMATE_WORKSPACE or current directory)",
    )
    parser.add_argument(
        "--log-file",
        default="/tmp/syncmate.log",
        help="Log file path (default: /tmp/syncmate.log)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"syncmate version {__version__}",
    )
    args = parser.parse_args()

    try:
        asyncio.run(main(os.path.abspath(args.workspace), args.log_file))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
