"""Process liveness checks.

The liveness check is an explicit capability so that lock handling can be
tested without real processes and ported without ad hoc platform code.
"""

import os
from typing import Protocol, final, runtime_checkable


@runtime_checkable
class LivenessCheck(Protocol):
    """Capability for asking whether a process is still alive."""

    def is_alive(self, pid: int) -> bool:
        """Return True if a process with the given pid exists.

        Args:
            pid: Process ID to check.

        Returns:
            True if the process exists, False otherwise.
        """
        ...


@final
class OsLivenessCheck:
    """Liveness check using signal 0 (`kill -0`)."""

    __slots__ = ()

    def is_alive(self, pid: int) -> bool:
        """Return True if a process with the given pid exists."""
        if pid <= 0:
            return False
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists, but owned by another user
            return True
        return True


@final
class StaticLivenessCheck:
    """Liveness check backed by a fixed set of live pids, for tests."""

    __slots__ = ("alive",)

    def __init__(self, alive: set[int] | None = None) -> None:
        """Initialize with the pids to report as alive."""
        self.alive: set[int] = set(alive or ())

    def is_alive(self, pid: int) -> bool:
        """Return True if pid was registered as alive."""
        return pid in self.alive
