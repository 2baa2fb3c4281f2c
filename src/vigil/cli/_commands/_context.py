# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

This module provides context management for global CLI options and the
loaded configuration. The CLIContext is set once at CLI startup and made
available to all commands via contextvars.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from vigil.config import Config, load_config
from vigil.exceptions import ConfigError
from vigil.utils import create_logger

from ._shared import ExitCode, exit_with_error

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

# Context variable for CLIContext
_current_cli_context: contextvars.ContextVar[CLIContext | None] = contextvars.ContextVar(
    "cli_context", default=None
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        verbose: Enable debug logging.
        config_path: Explicit config file given with --config.
    """

    config: Config = field(repr=False)
    verbose: bool = False
    config_path: Path | None = None

    @classmethod
    def get_current(cls) -> CLIContext:
        """Get the active CLIContext, loading configuration if none is set.

        Exits with CONFIG_ERROR if the configuration cannot be loaded.
        """
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx

        try:
            config = load_config()
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR)
        return cls(config=config)

    @classmethod
    def set_current(cls, ctx: CLIContext) -> None:
        """Set the current active CLIContext."""
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context."""
        _current_cli_context.set(None)

    def create_logger(self, component: str) -> FilteringBoundLogger:
        """Create a logger for a command from the logging configuration.

        Args:
            component: Component name bound to every entry.
        """
        logging_config = self.config.logging
        rotate = logging_config.max_bytes > 0
        return create_logger(
            level="debug" if self.verbose else logging_config.level.value,
            log_format=logging_config.format.value,  # pyright: ignore[reportArgumentType]
            log_file=logging_config.file,
            component=component,
            max_bytes=logging_config.max_bytes if rotate else None,
            backup_count=logging_config.backup_count if rotate else None,
        )
