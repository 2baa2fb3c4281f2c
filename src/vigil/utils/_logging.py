"""Structured logger factories.

Every logger is built with `structlog.wrap_logger`, so nothing here touches
the global structlog configuration. The supervisor, the orchestrator and
the CLI can each hold a logger with its own level, format and destination.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

_LEVELS = logging.getLevelNamesMapping()


def _get_log_level() -> int:
    """Return the level requested by `VIGIL_DEBUG` or `VIGIL_LOG_LEVEL`.

    `VIGIL_DEBUG` wins when set to anything non-empty. Unknown names and an
    unset environment both mean INFO.
    """
    if getenv("VIGIL_DEBUG"):
        return logging.DEBUG
    return _LEVELS.get(getenv("VIGIL_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Map a configured level name to its numeric value.

    Args:
        level: Level name, case-insensitive.
        respect_env: Let `VIGIL_DEBUG` force DEBUG.
    """
    if respect_env and getenv("VIGIL_DEBUG"):
        return logging.DEBUG
    return _LEVELS.get(level.upper(), logging.INFO)


def _processors(log_format: LogFormatType) -> "list[Processor]":  # noqa: UP037
    chain: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if log_format == "text":
        chain.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return chain


def _file_logger(path: Path, level: int, max_bytes: int | None, backup_count: int | None) -> logging.Logger:
    # A private stdlib logger per file; structlog renders, the handler owns the
    # open file and rotates it when both sizes are given
    handler: logging.FileHandler
    if max_bytes is not None and backup_count is not None:
        handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    else:
        handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))

    stdlib_logger = logging.getLogger(f"vigil.file.{path.resolve()}")
    for previous in stdlib_logger.handlers:
        previous.close()
    stdlib_logger.handlers.clear()
    stdlib_logger.addHandler(handler)
    stdlib_logger.setLevel(level)
    stdlib_logger.propagate = False
    return stdlib_logger


def _create_logger(
    log_file_path: str | None,
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
    stream: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Build a standalone structlog logger.

    Args:
        log_file_path: File to append to. When empty or None, entries go to
            `stream` (stderr by default).
        log_level: Minimum level. Read from the environment when None.
        log_format: "json" for one JSON object per line, "text" for
            `timestamp [level] event key=value` lines.
        max_bytes: Rotate the file at this size. Needs `backup_count`.
        backup_count: Rotated files to keep. Needs `max_bytes`.
        stream: Destination when no file is given.

    Returns:
        The logger.
    """
    level = _get_log_level() if log_level is None else log_level

    raw: Any  # pyright: ignore[reportExplicitAny]
    if not log_file_path:
        raw = structlog.PrintLogger(file=stream or sys.stderr)
    else:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        raw = _file_logger(path, level, max_bytes, backup_count)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw,
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
        ),
    )


def create_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    component: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
    stream: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger for one Vigil component.

    Settings normally come from the `[logging]` config table. A non-empty
    `VIGIL_DEBUG` forces DEBUG whatever `level` says, which is the quickest
    way to see why a child keeps restarting.

    Args:
        level: Level name (debug, info, warning, error).
        log_format: "json" or "text".
        log_file: File to append to, stderr if empty.
        component: Bound to every entry as `component` (watchdog, deploy, cli).
        max_bytes: Rotation size.
        backup_count: Rotated files to keep.
        stream: Destination when `log_file` is empty.
    """
    logger = _create_logger(
        log_file or None,
        log_level=_log_level_from_string(level, respect_env=True),
        log_format=log_format,
        max_bytes=max_bytes,
        backup_count=backup_count,
        stream=stream,
    )
    return logger.bind(component=component) if component else logger


def create_null_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Return a logger that discards everything."""
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[],
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            context_class=dict,
        ),
    )
