"""Configuration models.

This module provides Pydantic models for Vigil configuration sections
and the main Config container class.
"""

from vigil.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from vigil.config._models._config import Config
from vigil.config._models._deploy import (
    DEFAULT_LOCK_FILE,
    DeployConfig,
    TargetConfig,
    default_state_file,
)
from vigil.config._models._logging import LoggingConfig
from vigil.config._models._watchdog import DEFAULT_CRASH_LOG, WatchdogConfig

__all__ = [
    "DEFAULT_CRASH_LOG",
    "DEFAULT_LOCK_FILE",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "DeployConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "TargetConfig",
    "WatchdogConfig",
    "default_state_file",
]
