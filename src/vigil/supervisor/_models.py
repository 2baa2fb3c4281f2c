"""Data models for the supervisor.

This module defines the core data types for supervising one child process:
- SupervisorState: Lifecycle states of the supervisor
- SupervisorEventType: Types of lifecycle events
- SupervisorEvent: Immutable event records
- Clean, Crashed, Signaled: The tagged exit status of a child
- CrashRecord: One entry in the crash ledger
"""

from __future__ import annotations

import re
import signal
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from vigil.utils import parse_timestamp

if TYPE_CHECKING:
    from pendulum import DateTime


class SupervisorState(StrEnum):
    """Supervisor lifecycle states.

    - IDLE: Created, nothing started yet
    - STARTING: Checking the crash breaker and spawning the child
    - RUNNING: Child is running
    - CRASH_RECORDED: Child exited abnormally and the crash was recorded
    - BACKOFF: Waiting restart_delay before the next start
    - THRESHOLD_COOLDOWN: Crash breaker is open, waiting before re-checking
    - STOPPING: Shutdown requested, child is being terminated
    - TERMINATED: Terminal state
    """

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    CRASH_RECORDED = "crash_recorded"
    BACKOFF = "backoff"
    THRESHOLD_COOLDOWN = "threshold_cooldown"
    STOPPING = "stopping"
    TERMINATED = "terminated"


class SupervisorEventType(StrEnum):
    """Types of supervisor lifecycle events."""

    STARTED = "started"
    STOPPED = "stopped"
    CRASHED = "crashed"
    RESTARTING = "restarting"
    CRASH_WARNING = "crash_warning"
    THRESHOLD_EXCEEDED = "threshold_exceeded"
    SHUTDOWN = "shutdown"
    OUTPUT = "output"


@dataclass(frozen=True, slots=True)
class SupervisorEvent:
    """Immutable supervisor lifecycle event.

    Attributes:
        name: Name of the supervised program.
        event_type: Type of lifecycle event.
        timestamp: ISO 8601 formatted timestamp.
        pid: Process ID if applicable.
        exit_code: Exit code if the process terminated.
        message: Optional human-readable message.
    """

    name: str
    event_type: SupervisorEventType
    timestamp: str
    pid: int | None = None
    exit_code: int | None = None
    message: str | None = None


# =============================================================================
# Exit status
# =============================================================================


@dataclass(frozen=True, slots=True)
class Clean:
    """The child exited with code 0, an intentional stop."""

    @property
    def returncode(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class Crashed:
    """The child exited with a non-zero code."""

    code: int

    @property
    def returncode(self) -> int:
        return self.code


@dataclass(frozen=True, slots=True)
class Signaled:
    """The child was terminated by a signal."""

    signal: signal.Signals

    @property
    def returncode(self) -> int:
        return -int(self.signal)


ExitStatus: TypeAlias = "Clean | Crashed | Signaled"


def exit_status_from_returncode(returncode: int) -> ExitStatus:
    """Convert an OS return code to an exit status.

    Negative return codes are signal deaths, as reported by subprocess.

    Args:
        returncode: Return code of a reaped child.

    Returns:
        Clean for 0, Signaled for negative codes, Crashed otherwise.
    """
    if returncode == 0:
        return Clean()
    if returncode < 0:
        try:
            return Signaled(signal.Signals(-returncode))
        except ValueError:
            return Crashed(returncode)
    return Crashed(returncode)


# =============================================================================
# Crash ledger record
# =============================================================================

_RECORD_PATTERN = re.compile(
    r"^(?P<timestamp>\S+)\s+EXIT_CODE=(?P<code>-?\d+)(?:\s+SIGNAL=(?P<signal>\w+))?\s*$"
)


@dataclass(frozen=True, slots=True)
class CrashRecord:
    """One abnormal child exit.

    Attributes:
        timestamp: When the crash was observed (UTC).
        exit_code: Return code of the child (negative for signal deaths).
        signal: Name of the terminating signal, if any.
    """

    timestamp: DateTime
    exit_code: int
    signal: str | None = None

    @classmethod
    def from_status(cls, status: Crashed | Signaled, timestamp: DateTime) -> CrashRecord:
        """Build a record from an abnormal exit status."""
        match status:
            case Crashed(code=code):
                return cls(timestamp=timestamp, exit_code=code)
            case Signaled(signal=sig):
                return cls(timestamp=timestamp, exit_code=-int(sig), signal=sig.name)

    def to_line(self) -> str:
        """Format the record as a ledger line (without newline)."""
        line = f"{self.timestamp.in_tz('UTC').to_iso8601_string()} EXIT_CODE={self.exit_code}"
        if self.signal:
            line += f" SIGNAL={self.signal}"
        return line

    @classmethod
    def parse(cls, line: str) -> CrashRecord | None:
        """Parse a ledger line, returning None for malformed lines."""
        match = _RECORD_PATTERN.match(line.strip())
        if match is None:
            return None
        timestamp = parse_timestamp(match["timestamp"])
        if timestamp is None:
            return None
        return cls(
            timestamp=timestamp,
            exit_code=int(match["code"]),
            signal=match["signal"],
        )
