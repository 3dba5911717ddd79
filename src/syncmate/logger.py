"""Logging setup for the ``syncmate`` CLI and the ``syncmate-mcp`` server.

The CLI talks to a person, so records go to stderr (and optionally a
file).  The MCP server owns stdout for JSON-RPC, so it only ever logs to
a file.
"""

import json
import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MCP_LOG = "/tmp/syncmate.log"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, msg (+ exc)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _handler(handler: logging.Handler, debug_format: str, fmt: str) -> logging.Handler:
    if debug_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
) -> None:
    """
    Configure the root logger.

    Args:
        mode: "cli" logs to stderr, "mcp" logs to a file only.
        debug: Force DEBUG level regardless of LOG_LEVEL.
        log_file: Extra log file (cli) or the log file (mcp).  For mcp
            it defaults to LOG_FILE, then /tmp/syncmate.log.
        debug_format: "text" or "json".

    LOG_LEVEL defaults to INFO for the CLI, where the status lines are
    the output, and WARNING for the MCP server.
    """
    default_level = "WARNING" if mode == "mcp" else "INFO"
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(
            logging, os.getenv("LOG_LEVEL", default_level).upper(), logging.INFO
        )

    if mode == "mcp":
        logging.basicConfig(
            level=level,
            format=FILE_FORMAT,
            datefmt=DATE_FORMAT,
            filename=log_file or os.getenv("LOG_FILE", DEFAULT_MCP_LOG),
            filemode="a",
            force=True,
        )
    else:
        handlers = [
            _handler(logging.StreamHandler(sys.stderr), debug_format, LOG_FORMAT)
        ]
        if log_file:
            handlers.append(
                _handler(logging.FileHandler(log_file), debug_format, FILE_FORMAT)
            )
        logging.basicConfig(level=level, handlers=handlers, force=True)

    if level != logging.DEBUG:
        # The MCP SDK logs every request at INFO
        logging.getLogger("mcp").setLevel(logging.WARNING)
