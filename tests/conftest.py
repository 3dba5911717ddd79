"""Shared pytest fixtures and fakes for syncmate tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from syncmate.config_schema import SyncConfig
from syncmate.sync.orchestrator import SyncOrchestrator
from syncmate.sync.pause import PauseRegistry


@dataclass
class FakeDocument:
    """Editor document whose save can be held open or made to fail."""

    path: str
    is_untitled: bool = False
    is_dirty: bool = False
    fail_save: bool = False
    gate: asyncio.Event | None = None
    saves: int = 0
    on_save: Callable[[], None] | None = None

    async def save(self) -> bool:
        self.saves += 1
        if self.on_save is not None:
            self.on_save()
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_save:
            raise OSError("disk full")
        self.is_dirty = False
        return True


class FakeExecutor:
    """Transfer executor with scripted results."""

    def __init__(self, results: list[bool] | None = None) -> None:
        self.results = list(results or [])
        self.calls: list[list[str]] = []
        self.drain_count = 0

    async def transfer(self, paths) -> bool:
        self.calls.append(list(paths))
        if self.results:
            return self.results.pop(0)
        return True

    async def drained(self) -> None:
        self.drain_count += 1


@dataclass
class FakeHost:
    """Editor host that records everything shown to the user."""

    documents: list = field(default_factory=list)
    confirm_answers: list[bool] = field(default_factory=list)
    prompt_answer: str | None = None
    statuses: list[str] = field(default_factory=list)
    messages: list[tuple[str, str]] = field(default_factory=list)
    confirms: list[tuple[str, str]] = field(default_factory=list)
    commands: dict = field(default_factory=dict)
    save_handlers: list = field(default_factory=list)
    opened: list[str] = field(default_factory=list)
    save_all_calls: int = 0
    save_all_hook: Callable | None = None

    def text_documents(self):
        return list(self.documents)

    def on_did_save(self, handler) -> None:
        self.save_handlers.append(handler)

    async def save_all(self) -> bool:
        self.save_all_calls += 1
        if self.save_all_hook is not None:
            await self.save_all_hook()
        return True

    def set_status(self, message: str, timeout: float = 2.0) -> None:
        self.statuses.append(message)

    def show_message(self, message: str, level: str = "info") -> None:
        self.messages.append((level, message))

    async def confirm(self, message: str, action: str, level: str = "error") -> bool:
        self.confirms.append((message, action))
        if self.confirm_answers:
            return self.confirm_answers.pop(0)
        return False

    async def prompt(self, message: str) -> str | None:
        return self.prompt_answer

    def register_command(self, name: str, handler) -> None:
        self.commands[name] = handler

    def open_file(self, path: str) -> None:
        self.opened.append(path)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A workspace with a couple of files and a subdirectory."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "b.txt").write_text("b")
    (root / "src" / "app.py").write_text("print('hi')\n")
    return root


@pytest.fixture
def config() -> SyncConfig:
    return SyncConfig(host="remote.example.com", dest="/srv/app", user="deploy")


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def make_orchestrator(workspace, host, executor):
    """Factory building an orchestrator around the shared fakes."""

    def _make(config: SyncConfig | None = None, **kwargs) -> SyncOrchestrator:
        return SyncOrchestrator(
            config or SyncConfig(),
            str(workspace),
            host,
            executor,
            pause=kwargs.pop("pause", PauseRegistry()),
            done_delay=kwargs.pop("done_delay", 0),
            **kwargs,
        )

    return _make


@pytest.fixture
def write_config(workspace: Path):
    """Write a project config file and return its path."""

    def _write(text: str) -> Path:
        path = workspace / ".syncmate" / "config.yml"
        path.parent.mkdir(exist_ok=True)
        path.write_text(text)
        return path

    return _write


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep real user config and SYNCMATE_* env vars out of tests."""
    for key in (
        "SYNCMATE_CONFIG",
        "SYNCMATE_HOST",
        "SYNCMATE_USER",
        "SYNCMATE_PORT",
        "SYNCMATE_DEST",
        "SYNCMATE_DIRTY",
        "SYNCMATE_QUIET",
        "SYNCMATE_VERBOSE",
        "SYNCMATE_RSYNC",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
