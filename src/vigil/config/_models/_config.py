# pyright: reportExplicitAny=false, reportAny=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing Vigil configuration values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import tomli_w
from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from vigil.config._defaults import DEFAULT_CONFIG
from vigil.config._loader import deep_merge, parse_env_vars, read_toml_file
from vigil.config._models._common import ConfigSource, ConfigSourceName
from vigil.config._models._deploy import DeployConfig
from vigil.config._models._logging import LoggingConfig
from vigil.config._models._watchdog import WatchdogConfig
from vigil.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Self


class Config(BaseModel):
    """Configuration container with typed access.

    Immutable, validated view over the merged configuration sources.
    Use the factory methods rather than the constructor.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = LoggingConfig()
    watchdog: WatchdogConfig = WatchdogConfig()
    deploy: DeployConfig = DeployConfig()

    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @classmethod
    def _validate_merged(
        cls,
        merged: dict[str, Any],
        sources: tuple[ConfigSource, ...],
        *,
        source: str | None = None,
    ) -> Self:
        """Validate a merged dictionary into a Config.

        Raises:
            ConfigValidationError: On the first field that fails validation.
        """
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            msg = f"Invalid configuration value for '{key}': {first['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=first.get("input"),
                expected=first["type"],
                source=source,
            ) from e
        config._sources = sources  # noqa: SLF001
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Configuration object from the dictionary.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls._validate_merged(deep_merge(DEFAULT_CONFIG, data), ())

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to the TOML config file.

        Returns:
            Configuration object from the specified file only.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(
            name=ConfigSourceName.FILE, path=path, exists=True, values=data
        )
        return cls._validate_merged(
            deep_merge(DEFAULT_CONFIG, data), (source,), source=str(path)
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged lowest to highest precedence:
        defaults -> file -> env -> cli.

        Args:
            config_path: Config file to read. Discovered when None.
            include_env: Include environment variables as a source.
            cli_overrides: Dict of CLI argument overrides.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If the config file cannot be parsed.
            ConfigValidationError: If merged config fails validation.
        """
        from vigil.config._discovery import find_config_file  # noqa: PLC0415

        path = config_path if config_path is not None else find_config_file()

        sources: list[ConfigSource] = [
            ConfigSource(
                name=ConfigSourceName.DEFAULT,
                path=None,
                exists=True,
                values=DEFAULT_CONFIG,
            )
        ]
        if path is not None:
            sources.append(
                ConfigSource(
                    name=ConfigSourceName.FILE,
                    path=path,
                    exists=True,
                    values=read_toml_file(path),
                )
            )
        if include_env:
            env_values = parse_env_vars()
            sources.append(
                ConfigSource(
                    name=ConfigSourceName.ENV,
                    path=None,
                    exists=bool(env_values),
                    values=env_values,
                )
            )
        if cli_overrides:
            sources.append(
                ConfigSource(
                    name=ConfigSourceName.CLI,
                    path=None,
                    exists=True,
                    values=cli_overrides,
                )
            )

        merged: dict[str, Any] = {}
        for source in sources:
            if source.values:
                merged = deep_merge(merged, source.values)

        # Highest precedence first, matching ConfigSourceName ordering
        return cls._validate_merged(
            merged,
            tuple(reversed(sources)),
            source=str(path) if path is not None else None,
        )

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration."""
        return list(self._sources)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "watchdog.restart_delay").
            default: Default value if key not found.

        Returns:
            The configuration value, or default if not found.
        """
        current: Any = self.to_dict()
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a JSON-compatible dictionary."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_toml(self) -> str:
        """Serialize the configuration to TOML."""
        return tomli_w.dumps(self.to_dict())
