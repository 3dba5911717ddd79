"""Load the sync configuration snapshot for a workspace.

Reads settings from CLI overrides, environment variables, .env files
and config file(s) discovered under the workspace root.

Precedence (highest to lowest):
    CLI overrides > Environment variables > .env file > config file > defaults

A workspace without any config file has no sync capability: ``load_config``
raises ``ConfigError`` rather than inventing a destination.

Environment variables:
    SYNCMATE_HOST: Remote host
    SYNCMATE_USER: Remote username
    SYNCMATE_PORT: Remote SSH port
    SYNCMATE_DEST: Destination path on the remote
    SYNCMATE_DIRTY / SYNCMATE_QUIET / SYNCMATE_VERBOSE: boolean switches
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import SyncConfig, build_config

logger = logging.getLogger(__name__)

_STRING_ENV = {
    "host": "SYNCMATE_HOST",
    "user": "SYNCMATE_USER",
    "dest": "SYNCMATE_DEST",
}
_BOOL_ENV = {
    "dirty": "SYNCMATE_DIRTY",
    "quiet": "SYNCMATE_QUIET",
    "verbose": "SYNCMATE_VERBOSE",
}


class ConfigError(ValueError):
    """Configuration is missing or cannot be used."""


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _env_overrides() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for field, env_key in _STRING_ENV.items():
        val = os.getenv(env_key)
        if val:
            values[field] = val

    for field, env_key in _BOOL_ENV.items():
        flag = get_bool_env(env_key)
        if flag is not None:
            values[field] = flag

    port_raw = os.getenv("SYNCMATE_PORT")
    if port_raw is not None:
        try:
            values["port"] = int(port_raw)
        except ValueError:
            raise ConfigError(
                f"Invalid SYNCMATE_PORT '{port_raw}': must be a number between 1 and 65535"
            ) from None
    return values


def load_config(
    workspace_root: str | Path,
    overrides: dict[str, Any] | None = None,
) -> SyncConfig:
    """Load the sync configuration for *workspace_root*.

    The caller is responsible for calling ``load_dotenv()`` first so
    that .env values are visible through ``os.getenv()``.

    Args:
        workspace_root: Root directory of the workspace.
        overrides: Values from the command line; ``None`` entries are
            ignored.

    Returns:
        Validated, frozen ``SyncConfig``.

    Raises:
        ConfigError: If no config file exists, a file cannot be parsed,
            or a value fails validation.
    """
    if not discover_config_files(workspace_root):
        raise ConfigError(
            f"No syncmate configuration found for {workspace_root}. "
            "Run 'syncmate init' to create one."
        )

    try:
        raw = load_hierarchical_config(workspace_root)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Config file is not a valid YAML/JSON document: {exc}"
        ) from exc
    except (OSError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc

    raw.update(_env_overrides())
    raw.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        config = build_config(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    if config.local and not Path(config.local).is_dir():
        logger.warning(
            "Configured local directory %s does not exist", config.local
        )

    return config
