"""Vigil exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class VigilError(Exception):
    """Base exception for Vigil errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(VigilError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(VigilError):
    """Base exception for supervisor errors."""


class ExecutableNotFoundError(SupervisorError, FileNotFoundError):
    """Raised when the supervised executable cannot be resolved or built.

    This is fatal: there is nothing to supervise, so no restart is attempted.

    Attributes:
        executable: The executable name or path that was requested.
        searched: Every location that was checked.
    """

    def __init__(
        self,
        message: str,
        *,
        executable: str,
        searched: tuple[str, ...] = (),
    ) -> None:
        """Initialize with error message and lookup context.

        Args:
            message: Human-readable error message.
            executable: The executable name or path that was requested.
            searched: Every location that was checked.
        """
        super().__init__(message)
        self.executable: str = executable
        self.searched: tuple[str, ...] = searched


class ServiceStartError(SupervisorError):
    """Raised when the supervised process fails to start.

    Attributes:
        executable: The executable that failed to start.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        executable: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            executable: The executable that failed to start.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.executable: str | None = executable
        self.cause: Exception | None = cause


class ServiceStopError(SupervisorError):
    """Raised when the supervised process fails to stop.

    Attributes:
        pid: Process ID of the child that could not be stopped.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        pid: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context."""
        super().__init__(message)
        self.pid: int | None = pid
        self.cause: Exception | None = cause


# =============================================================================
# Deployment Exceptions
# =============================================================================


class DeployError(VigilError):
    """Base exception for deployment errors."""


class GitError(DeployError):
    """Raised when a version-control operation fails.

    Attributes:
        path: Working copy the operation ran against.
        operation: Name of the failed operation (fetch, pull, rev-parse).
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        operation: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and repository context.

        Args:
            message: Human-readable error message.
            path: Working copy the operation ran against.
            operation: Name of the failed operation.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.operation: str | None = operation
        self.cause: Exception | None = cause


class LockError(DeployError):
    """Raised when the run lock file cannot be opened or written.

    Contention is not an error; this only covers I/O failures.

    Attributes:
        path: Path of the lock file.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and lock context."""
        super().__init__(message)
        self.path: Path | None = path
        self.cause: Exception | None = cause


class TargetSpecError(DeployError, ValueError):
    """Raised when a deployment target descriptor cannot be parsed.

    Attributes:
        spec: The descriptor that failed to parse.
    """

    def __init__(self, message: str, *, spec: str) -> None:
        """Initialize with error message and the offending descriptor."""
        super().__init__(message)
        self.spec: str = spec


class StateError(DeployError):
    """Raised when the applied-revision store cannot be written.

    Attributes:
        path: Path of the state file.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and state file context."""
        super().__init__(message)
        self.path: Path | None = path
        self.cause: Exception | None = cause
