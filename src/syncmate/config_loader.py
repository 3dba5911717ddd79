"""
Configuration file discovery and loading for syncmate.

Provides convention-based config file discovery relative to a workspace
root, env var interpolation, starter-file bootstrapping, and
hierarchical merge with "project wins" semantics.

Usage:
    from syncmate.config_loader import load_hierarchical_config

    raw = load_hierarchical_config("/path/to/workspace")
"""

import getpass
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path(".syncmate") / "config.yml"
LEGACY_CONFIG = Path(".vscode") / "sync-config.json"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# Matches ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` patterns with env values.

    * ``${VAR}`` is replaced with ``os.environ.get(VAR, "")``.
    * ``${VAR:-default}`` uses *default* when VAR is unset or empty.
    * Literal ``${`` with no closing ``}`` is left untouched.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    """Walk a nested dict/list and interpolate env vars in all strings."""
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# 2. Convention-based file discovery
# ---------------------------------------------------------------------------


def discover_config_files(workspace_root: str | Path) -> list[Path]:
    """Return existing config file paths in precedence order (highest first).

    Search order:
        1. ``SYNCMATE_CONFIG`` env var (explicit single path)
        2. ``<root>/.syncmate/config.yml`` (project-level)
        3. ``<root>/.vscode/sync-config.json`` (editor extension location)
        4. ``~/.config/syncmate/config.yml`` (global defaults)

    Only paths that exist on disk are returned.
    """
    root = Path(workspace_root)
    candidates: list[Path] = []

    env_path = os.environ.get("SYNCMATE_CONFIG")
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    candidates.append(root / PROJECT_CONFIG)
    candidates.append(root / LEGACY_CONFIG)
    candidates.append(Path.home() / ".config" / "syncmate" / "config.yml")

    return [p for p in candidates if p.is_file()]


def _load_file(path: Path) -> Any:
    # JSON is a subset of YAML, so sync-config.json loads through the same path
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


# ---------------------------------------------------------------------------
# 3. Config bootstrapping
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# syncmate configuration
#
# Connection settings can also be set via environment variables:
#   SYNCMATE_HOST, SYNCMATE_USER, SYNCMATE_PORT, SYNCMATE_DEST
#
# Sync automatically on file save
onSave: false
# The remote host location (hostname or IP)
host: localhost
# The destination path on the remote
dest: /
# The local directory rsync runs from
local: {local}
# The username to rsync with
user: {user}
# The remote SSH port
port: 22
# Additional rsync flags
flags: ""
# Log rsync command lines and output
verbose: false
# Report failures without prompting to retry
quiet: false
# Save and sync dirty (unsaved) files
dirty: false
# Patterns passed to rsync --exclude
exclude:
  - '\\.vscode'
  - '\\.git'
  - '\\.DS_Store'
"""


def resolve_config_path(workspace_root: str | Path) -> Path:
    """Return the single config file path that should be used.

    If config files already exist, return the highest-precedence one.
    Otherwise return the default project-level path
    ``<root>/.syncmate/config.yml``.  Does NOT create the file.
    """
    existing = discover_config_files(workspace_root)
    if existing:
        return existing[0]
    return Path(workspace_root) / PROJECT_CONFIG


def ensure_config(
    workspace_root: str | Path, target: Path | None = None
) -> tuple[Path, bool]:
    """Ensure a config file exists, creating directory and starter file if needed.

    Args:
        workspace_root: Workspace the config belongs to.
        target: Explicit path to create.  If ``None``, uses
            ``resolve_config_path()``.

    Returns:
        ``(path, created)`` -- the config file path and whether it was
        written by this call.

    Raises:
        ValueError: If *workspace_root* is empty.
    """
    if not str(workspace_root).strip():
        raise ValueError("Cannot initialize configuration in an empty workspace.")

    existing = discover_config_files(workspace_root)
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0], False

    config_path = target or resolve_config_path(workspace_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    content = _STARTER_CONFIG.format(
        local=Path(workspace_root).resolve(), user=getpass.getuser()
    )
    config_path.write_text(content, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)

    return config_path, True


# ---------------------------------------------------------------------------
# 4. Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config(workspace_root: str | Path) -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are loaded from lowest precedence to highest; each file's keys
    replace those from earlier files.  Env var interpolation is applied
    after merging.

    Returns an empty dict when no config files exist.

    Raises:
        yaml.YAMLError: If a file is not valid YAML/JSON.
        ValueError: If a file's root is not a mapping.
    """
    paths = discover_config_files(workspace_root)

    if not paths:
        logger.debug("No config files found for %s", workspace_root)
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        data = _load_file(path)

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            raise ValueError(
                f"Config file {path} must contain a mapping, "
                f"not {type(data).__name__}"
            )

    return _interpolate_recursive(merged)
