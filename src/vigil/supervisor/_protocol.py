"""Protocol definitions for the supervisor.

This module defines the interface that decouples the supervisor core from
output implementations:
- OutputSink: Protocol for consuming child output and lifecycle events
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._models import SupervisorEvent


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for consuming supervisor output.

    OutputSinks receive lifecycle events and, when output capture is enabled,
    the child's output lines. The protocol is async to support non-blocking
    I/O such as writing to files or consoles.
    """

    async def write_line(
        self,
        name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of child output.

        Args:
            name: Name of the supervised program.
            pid: Process ID of the child.
            stream: Which output stream the line came from.
            line: The output line (without trailing newline).
        """
        ...

    async def write_event(self, event: SupervisorEvent) -> None:
        """Write a supervisor lifecycle event.

        Args:
            event: The lifecycle event to record.
        """
        ...
