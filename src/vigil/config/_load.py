"""Configuration loading for CLI invocations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vigil.exceptions import ConfigError

from ._models import Config

if TYPE_CHECKING:
    from pathlib import Path


def load_config(
    *,
    config_path: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
) -> Config:
    """Load configuration for a CLI invocation.

    Unlike interactive tools, the watchdog and deploy agent run unattended,
    so a broken configuration is reported and fails the command instead of
    silently falling back to defaults.

    When config_path is provided, the file must exist (explicit user request).

    Args:
        config_path: Explicit path to config file (--config flag).
        cli_overrides: CLI argument overrides to pass to Config.load().

    Returns:
        The loaded Config.

    Raises:
        ConfigError: If the configuration cannot be loaded or is invalid.
    """
    if config_path is not None and not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise ConfigError(msg)

    try:
        return Config.load(config_path=config_path, cli_overrides=cli_overrides)
    except FileNotFoundError as e:
        msg = f"Config file not found: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Failed to load config: {e}"
        raise ConfigError(msg) from e
