"""Output sink implementations for the supervisor.

This module provides concrete implementations of the OutputSink protocol:
- ConsoleOutputSink: colored operator-facing console output (rich)
- LogOutputSink: structured log lines (structlog)
- TeeOutputSink: fan-out to several sinks
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import SupervisorEventType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger

    from ._models import SupervisorEvent
    from ._protocol import OutputSink


@final
class ConsoleOutputSink:
    """Output sink that writes to the console with formatted prefixes.

    Formats child output as `[name:pid] line` and events as
    `[name] EVENT (pid=...) - message` with color coding per event type.
    """

    __slots__ = ("_console", "_event_styles", "_stderr_style", "_stdout_style")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the output sink.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._console = console or Console()
        self._stdout_style = Style()
        self._stderr_style = Style(color="red", dim=True)
        self._event_styles: dict[SupervisorEventType, Style] = {
            SupervisorEventType.STARTED: Style(color="green", bold=True),
            SupervisorEventType.STOPPED: Style(color="green"),
            SupervisorEventType.CRASHED: Style(color="red", bold=True),
            SupervisorEventType.RESTARTING: Style(color="cyan"),
            SupervisorEventType.CRASH_WARNING: Style(color="yellow"),
            SupervisorEventType.THRESHOLD_EXCEEDED: Style(color="red", bold=True),
            SupervisorEventType.SHUTDOWN: Style(color="yellow"),
            SupervisorEventType.OUTPUT: Style(dim=True),
        }

    async def write_line(
        self,
        name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of child output with prefix."""
        style = self._stderr_style if stream == "stderr" else self._stdout_style

        text = Text()
        _ = text.append(f"[{name}:{pid}]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(line, style=style)

        self._console.print(text)

    async def write_event(self, event: SupervisorEvent) -> None:
        """Write a lifecycle event with special formatting."""
        style = self._event_styles.get(event.event_type, Style())

        text = Text()
        _ = text.append(f"[{event.name}]", style=Style(color="blue", bold=True))
        _ = text.append(f" {event.timestamp} ", style=Style(dim=True))
        _ = text.append(event.event_type.value.upper(), style=style)

        if event.pid is not None:
            _ = text.append(f" (pid={event.pid})", style=Style(dim=True))

        if event.exit_code is not None:
            _ = text.append(f" exit_code={event.exit_code}", style=Style(dim=True))

        if event.message:
            _ = text.append(f" - {event.message}", style=style)

        self._console.print(text)


_EVENT_LEVELS: dict[SupervisorEventType, str] = {
    SupervisorEventType.CRASHED: "error",
    SupervisorEventType.THRESHOLD_EXCEEDED: "error",
    SupervisorEventType.CRASH_WARNING: "warning",
    SupervisorEventType.OUTPUT: "debug",
}


@final
class LogOutputSink:
    """Output sink that emits structured log entries."""

    __slots__ = ("_logger",)

    def __init__(self, logger: FilteringBoundLogger) -> None:
        """Initialize with the logger to write to."""
        self._logger = logger

    async def write_line(
        self,
        name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Log a line of child output."""
        await self._logger.ainfo("child_output", program=name, pid=pid, stream=stream, line=line)

    async def write_event(self, event: SupervisorEvent) -> None:
        """Log a lifecycle event at a severity matching its type."""
        level = _EVENT_LEVELS.get(event.event_type, "info")
        method = getattr(self._logger, f"a{level}")
        await method(
            f"child_{event.event_type.value}",
            program=event.name,
            pid=event.pid,
            exit_code=event.exit_code,
            message=event.message,
        )


@final
class TeeOutputSink:
    """Output sink that forwards everything to several sinks in order."""

    __slots__ = ("_sinks",)

    def __init__(self, sinks: Sequence[OutputSink]) -> None:
        """Initialize with the sinks to forward to."""
        self._sinks = tuple(sinks)

    async def write_line(
        self,
        name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Forward a line of child output."""
        for sink in self._sinks:
            await sink.write_line(name, pid, stream, line)

    async def write_event(self, event: SupervisorEvent) -> None:
        """Forward a lifecycle event."""
        for sink in self._sinks:
            await sink.write_event(event)
