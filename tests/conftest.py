"""Shared test fixtures for Vigil tests."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import pytest
from rich.console import Console

from vigil.config import WatchdogConfig
from vigil.supervisor import SupervisorEvent, SupervisorEventType


@dataclass(slots=True)
class RecordingSink:
    """OutputSink that keeps everything it receives."""

    events: list[SupervisorEvent] = field(default_factory=list)
    lines: list[tuple[str, str]] = field(default_factory=list)

    async def write_line(
        self,
        name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        self.lines.append((stream, line))

    async def write_event(self, event: SupervisorEvent) -> None:
        self.events.append(event)

    def types(self) -> list[SupervisorEventType]:
        return [event.event_type for event in self.events]

    def count(self, event_type: SupervisorEventType) -> int:
        return sum(1 for event in self.events if event.event_type == event_type)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def console() -> Console:
    return Console(
        width=100,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def crash_log(tmp_path: Path) -> Path:
    return tmp_path / "crashes.log"


@pytest.fixture
def watchdog_config(crash_log: Path) -> WatchdogConfig:
    """Watchdog settings with delays short enough for tests."""
    return WatchdogConfig(
        crash_log=crash_log,
        restart_delay=0,
        max_crashes_per_hour=10,
        threshold_cooldown=0.05,
        shutdown_grace=2,
    )


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the host's configuration out of every test."""
    for name in ("CRASH_LOG", "RESTART_DELAY", "MAX_CRASHES_PER_HOUR"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("VIGIL_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "vigil.config._discovery.get_user_config_path",
        lambda: tmp_path / "user" / "config.toml",
    )
