"""Timestamp helpers built on pendulum."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import pendulum

if TYPE_CHECKING:
    from collections.abc import Callable

    from pendulum import DateTime

Clock: TypeAlias = "Callable[[], DateTime]"


def utc_now() -> DateTime:
    """Return the current time in UTC."""
    return pendulum.now("UTC")


def get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return utc_now().to_iso8601_string()


def parse_timestamp(value: str) -> DateTime | None:
    """Parse an ISO 8601 timestamp, returning None if it is malformed.

    Naive timestamps are interpreted as UTC.
    """
    try:
        # ParserError subclasses ValueError
        parsed = pendulum.parse(value, tz="UTC")
    except ValueError:
        return None
    if not isinstance(parsed, pendulum.DateTime):
        return None
    return parsed
