"""Configuration schema for syncmate.

Defines the immutable ``SyncConfig`` snapshot loaded once at startup.
The file format is flat (one key per option) and accepts the camelCase
``onSave`` key used by existing ``sync-config.json`` files.

Usage:
    from syncmate.config_schema import SyncConfig, build_config

    raw = load_hierarchical_config(workspace_root)
    config = build_config(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE = ["\\.vscode", "\\.git", "\\.DS_Store"]


class SyncConfig(BaseModel):
    """Recognized sync options.

    The orchestration core reads ``dirty`` and ``quiet``; everything else
    is handed to the transfer executor unchanged.
    """

    on_save: bool = Field(
        default=False,
        alias="onSave",
        description="Sync automatically whenever a document is saved",
    )
    dirty: bool = Field(
        default=False,
        description="Save and sync documents that have unsaved edits",
    )
    quiet: bool = Field(
        default=False,
        description="Report transfer failures without a retry prompt",
    )
    verbose: bool = Field(
        default=False,
        description="Log rsync command lines and output",
    )
    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE),
        description="Patterns passed to rsync --exclude",
    )
    host: str = Field(default="localhost", description="Remote host")
    dest: str = Field(default="/", description="Destination path on the remote")
    local: str | None = Field(
        default=None,
        description="Local directory rsync runs from (default: workspace root)",
    )
    user: str | None = Field(default=None, description="Remote username")
    port: int = Field(default=22, ge=1, le=65535, description="SSH port")
    flags: str = Field(default="", description="Additional rsync flags")
    max_parallel_transfers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Maximum concurrent rsync processes (1-16)",
    )
    debounce: float = Field(
        default=0.25,
        ge=0,
        le=10,
        description="Quiet period in seconds before on-save syncs run",
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("host")
    @classmethod
    def _host_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch.isspace() for ch in value):
            raise ValueError(f"Invalid host '{value}'")
        return value

    @field_validator("dest")
    @classmethod
    def _dest_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("dest cannot be empty")
        return value

    @field_validator("user")
    @classmethod
    def _user_placeholder(cls, value: str | None) -> str | None:
        # Older configs used the shell placeholder "$(whoami)"; no shell is
        # involved here, so treat it as "current user".
        if value is None or not value.strip() or value.strip() == "$(whoami)":
            return None
        return value.strip()


def build_config(raw_data: dict) -> SyncConfig:
    """Construct a ``SyncConfig`` from the merged raw dict.

    Handles missing keys gracefully -- anything absent gets defaults.

    Raises:
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    if not raw_data:
        return SyncConfig()

    return SyncConfig(**raw_data)
