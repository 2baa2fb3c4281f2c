"""Self-healing supervision of a single child process.

This package keeps one program running, restarting it after abnormal exits
and recording every crash in a durable ledger so crash loops can be detected
across supervisor restarts.
"""

from ._ledger import CrashLedger
from ._models import (
    Clean,
    Crashed,
    CrashRecord,
    ExitStatus,
    Signaled,
    SupervisorEvent,
    SupervisorEventType,
    SupervisorState,
    exit_status_from_returncode,
)
from ._output import ConsoleOutputSink, LogOutputSink, TeeOutputSink
from ._process import ChildProcess
from ._protocol import OutputSink
from ._resolve import find_executable, resolve_executable
from ._supervisor import Supervisor

__all__ = [
    "ChildProcess",
    "Clean",
    "ConsoleOutputSink",
    "CrashLedger",
    "CrashRecord",
    "Crashed",
    "ExitStatus",
    "LogOutputSink",
    "OutputSink",
    "Signaled",
    "Supervisor",
    "SupervisorEvent",
    "SupervisorEventType",
    "SupervisorState",
    "TeeOutputSink",
    "exit_status_from_returncode",
    "find_executable",
    "resolve_executable",
]
