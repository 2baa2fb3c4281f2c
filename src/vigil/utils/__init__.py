"""Shared utilities for Vigil."""

from ._exec import (
    DEFAULT_SHELL,
    MAX_OUTPUT_BYTES,
    ScriptConfig,
    ScriptResult,
    build_command,
    run_script,
    truncate_output,
)
from ._logging import LogFormatType, create_logger, create_null_logger
from ._process import LivenessCheck, OsLivenessCheck, StaticLivenessCheck
from ._time import Clock, get_timestamp, parse_timestamp, utc_now

__all__ = [
    "DEFAULT_SHELL",
    "MAX_OUTPUT_BYTES",
    "Clock",
    "LogFormatType",
    "LivenessCheck",
    "OsLivenessCheck",
    "ScriptConfig",
    "ScriptResult",
    "StaticLivenessCheck",
    "build_command",
    "create_logger",
    "create_null_logger",
    "get_timestamp",
    "parse_timestamp",
    "run_script",
    "truncate_output",
    "utc_now",
]
