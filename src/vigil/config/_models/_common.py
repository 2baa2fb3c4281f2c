"""Enums and source metadata shared by the configuration models."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import Any


class LogLevel(StrEnum):
    """Minimum level written to the log, from most to least verbose."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log line format: JSON objects or human-readable text."""

    JSON = "json"
    TEXT = "text"


class ConfigSourceName(StrEnum):
    """Where a configuration layer came from.

    Declared from highest to lowest precedence, the order `vigil config
    --sources` prints them in.
    """

    CLI = "cli"
    ENV = "env"
    FILE = "file"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One layer of the merged configuration.

    Attributes:
        name: Kind of layer.
        path: Config file for the FILE layer, None otherwise.
        exists: Whether the layer contributed anything.
        values: Raw values of the layer, before validation.
    """

    name: ConfigSourceName
    path: Path | None
    exists: bool
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]
