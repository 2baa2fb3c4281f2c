"""Vigil configuration.

This module provides the public API for Vigil configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from vigil.config import Config
    >>> config = Config.load()
    >>> config.watchdog.restart_delay
    5.0
"""

from vigil.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import PROJECT_CONFIG_NAME, find_config_file, get_user_config_path
from ._load import load_config
from ._loader import (
    LEGACY_ENV_VARS,
    deep_merge,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    DEFAULT_CRASH_LOG,
    DEFAULT_LOCK_FILE,
    Config,
    ConfigSource,
    ConfigSourceName,
    DeployConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    TargetConfig,
    WatchdogConfig,
    default_state_file,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_CRASH_LOG",
    "DEFAULT_LOCK_FILE",
    "LEGACY_ENV_VARS",
    "PROJECT_CONFIG_NAME",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "DeployConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "TargetConfig",
    "WatchdogConfig",
    "deep_merge",
    "default_state_file",
    "find_config_file",
    "get_user_config_path",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
    "set_nested_key",
]
