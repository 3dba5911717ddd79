"""Command line entry point: ``syncmate``.

Runs one sync command against a workspace using a terminal host, then
waits for every transfer to drain before exiting.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from . import __version__
from .extension import COMMAND_PREFIX, INIT_COMMAND, activate
from .host import ConsoleHost
from .logger import setup_logging
from .sync.models import SyncResult
from .sync.reporter import format_result

logger = logging.getLogger(__name__)

_SUBCOMMANDS = {
    "files": f"{COMMAND_PREFIX}.syncOpenFiles",
    "project": f"{COMMAND_PREFIX}.syncProject",
    "directory": f"{COMMAND_PREFIX}.syncDirectory",
    "init": INIT_COMMAND,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syncmate",
        description="Push workspace files to a remote host with rsync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create .syncmate/config.yml in the current directory
  syncmate init

  # Sync two files
  syncmate files src/app.py README.md

  # Sync the whole workspace
  syncmate project

  # Sync one directory (prompts when DIR is omitted)
  syncmate directory src/static
        """,
    )
    parser.add_argument(
        "--workspace",
        default=os.getcwd(),
        help="Workspace root (default: current directory)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--debug-format",
        choices=("text", "json"),
        default="text",
        help="Log output format (default: text)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        default=None,
        help="Never prompt to retry a failed transfer",
    )
    parser.add_argument(
        "--dirty",
        action="store_true",
        default=None,
        help="Save and sync documents with unsaved edits",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"syncmate version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init", help="Create a starter configuration file")
    files = sub.add_parser("files", help="Sync the given files")
    files.add_argument("paths", nargs="+", help="Files to sync")
    sub.add_parser("project", help="Sync the whole workspace")
    directory = sub.add_parser("directory", help="Sync one directory")
    directory.add_argument(
        "dir", nargs="?", help="Directory relative to the workspace root"
    )
    return parser


async def main(args: argparse.Namespace) -> int:
    """Run the selected command; return the process exit code."""
    workspace = os.path.abspath(args.workspace)
    paths = [os.path.abspath(p) for p in getattr(args, "paths", [])]
    host = ConsoleHost(paths, interactive=sys.stdin.isatty())

    overrides = {"quiet": args.quiet, "dirty": args.dirty}
    extension = activate(host, workspace, overrides)

    if args.command == "directory" and args.dir is not None:
        if not extension.enabled:
            await host.run_command(_SUBCOMMANDS["directory"])
            return 1
        result = await extension.orchestrator.sync_directory(args.dir)
    else:
        result = await host.run_command(_SUBCOMMANDS[args.command])

    await extension.wait_idle()

    if args.command == "init":
        return 0 if result else 1
    if not extension.enabled or not isinstance(result, SyncResult):
        return 1
    logger.info(format_result(result))
    return 0 if result.success else 1


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()
    load_dotenv()
    setup_logging(
        mode="cli",
        debug=args.debug,
        log_file=args.log_file,
        debug_format=args.debug_format,
    )

    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
