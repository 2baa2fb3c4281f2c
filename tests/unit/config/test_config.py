# pyright: reportAny=false
from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING

import pytest

from vigil.config import (
    DEFAULT_CRASH_LOG,
    Config,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from vigil.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pathlib import Path


def write_config(path: Path, content: str) -> Path:
    _ = path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    def test_watchdog_defaults(self) -> None:
        config = Config()

        assert config.watchdog.crash_log == DEFAULT_CRASH_LOG
        assert config.watchdog.restart_delay == 5.0
        assert config.watchdog.max_crashes_per_hour == 10
        assert config.watchdog.window == 3600.0
        assert config.watchdog.capture_output is False

    def test_deploy_defaults(self) -> None:
        config = Config()

        assert config.deploy.shell == "/bin/sh"
        assert config.deploy.targets == ()
        assert config.deploy.command_timeout == 0.0
        assert config.deploy.state_file.name == "deploy-state.json"

    def test_logging_defaults(self) -> None:
        config = Config.from_dict({})

        assert config.logging.level is LogLevel.INFO
        assert config.logging.format is LogFormat.TEXT
        assert config.logging.file == ""

    def test_is_frozen(self) -> None:
        config = Config()

        with pytest.raises(ValueError, match="frozen"):
            config.watchdog = config.watchdog  # pyright: ignore[reportAttributeAccessIssue]


class TestFromFile:
    def test_reads_sections(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path / "vigil.toml",
            """
[watchdog]
restart_delay = 1.5
max_crashes_per_hour = 3

[deploy]
cleanup = ["docker image prune -f"]

[[deploy.targets]]
path = "/srv/api"
build = "make"
deploy = "make install"

[[deploy.targets]]
name = "web"
path = "/srv/site"
branch = "production"
""",
        )

        config = Config.from_file(path)

        assert config.watchdog.restart_delay == 1.5
        assert config.watchdog.max_crashes_per_hour == 3
        assert config.deploy.cleanup == ("docker image prune -f",)
        api, web = config.deploy.targets
        assert str(api.path) == "/srv/api"
        assert api.name == ""
        assert api.remote == "origin"
        assert api.branch == "main"
        assert api.build == "make"
        assert web.name == "web"
        assert web.branch == "production"
        assert web.build is None

    def test_records_file_source(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "vigil.toml", "[watchdog]\nwindow = 60\n")

        config = Config.from_file(path)

        assert [s.name for s in config.sources] == [ConfigSourceName.FILE]
        assert config.sources[0].path == path

    def test_unknown_keys_are_ignored(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "vigil.toml", "[watchdog]\nflavour = 'mint'\n")

        assert Config.from_file(path).watchdog.restart_delay == 5.0


class TestValidation:
    def test_negative_delay_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            Config.from_dict({"watchdog": {"restart_delay": -1}})

        error = exc_info.value
        assert error.key == "watchdog.restart_delay"
        assert error.value == -1
        assert "watchdog.restart_delay" in str(error)

    def test_zero_threshold_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            Config.from_dict({"watchdog": {"max_crashes_per_hour": 0}})

        assert exc_info.value.key == "watchdog.max_crashes_per_hour"

    def test_unknown_log_level_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            Config.from_dict({"logging": {"level": "chatty"}})

        assert exc_info.value.key == "logging.level"

    def test_target_without_path_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            Config.from_dict({"deploy": {"targets": [{"name": "api"}]}})

        assert exc_info.value.key == "deploy.targets.0.path"

    def test_source_names_the_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "vigil.toml", "[watchdog]\nwindow = 0\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            Config.from_file(path)

        assert exc_info.value.source == str(path)


class TestLoad:
    def test_defaults_when_nothing_configured(self) -> None:
        config = Config.load()

        assert config.watchdog.restart_delay == 5.0
        assert [s.name for s in config.sources] == [
            ConfigSourceName.ENV,
            ConfigSourceName.DEFAULT,
        ]

    def test_discovers_project_file(self, tmp_path: Path) -> None:
        _ = write_config(tmp_path / "vigil.toml", "[watchdog]\nrestart_delay = 2\n")

        assert Config.load().watchdog.restart_delay == 2.0

    def test_precedence_cli_over_env_over_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = write_config(
            tmp_path / "custom.toml",
            "[watchdog]\nrestart_delay = 3\nwindow = 120\nmax_crashes_per_hour = 2\n",
        )
        monkeypatch.setenv("VIGIL_WATCHDOG__RESTART_DELAY", "4")
        monkeypatch.setenv("VIGIL_WATCHDOG__WINDOW", "240")

        config = Config.load(
            config_path=path,
            cli_overrides={"watchdog": {"restart_delay": 6}},
        )

        assert config.watchdog.restart_delay == 6.0
        assert config.watchdog.window == 240.0
        assert config.watchdog.max_crashes_per_hour == 2
        assert [s.name for s in config.sources] == [
            ConfigSourceName.CLI,
            ConfigSourceName.ENV,
            ConfigSourceName.FILE,
            ConfigSourceName.DEFAULT,
        ]

    def test_legacy_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRASH_LOG", str(tmp_path / "legacy.log"))
        monkeypatch.setenv("RESTART_DELAY", "9")
        monkeypatch.setenv("MAX_CRASHES_PER_HOUR", "2")

        config = Config.load()

        assert config.watchdog.crash_log == tmp_path / "legacy.log"
        assert config.watchdog.restart_delay == 9.0
        assert config.watchdog.max_crashes_per_hour == 2

    def test_include_env_false(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTART_DELAY", "9")

        assert Config.load(include_env=False).watchdog.restart_delay == 5.0


class TestAccessors:
    def test_get_dotted_key(self) -> None:
        config = Config.from_dict({"deploy": {"shell": "/bin/bash"}})

        assert config.get("deploy.shell") == "/bin/bash"
        assert config.get("deploy.missing", "fallback") == "fallback"
        assert config.get("deploy.shell.deeper") is None

    def test_to_dict_is_json_compatible(self) -> None:
        data = Config().to_dict()

        assert isinstance(data["watchdog"]["crash_log"], str)
        assert "build_command" not in data["watchdog"]

    def test_to_toml_round_trips_through_tomllib(self) -> None:
        config = Config.from_dict(
            {"deploy": {"targets": [{"name": "api", "path": "/srv/api", "build": "make"}]}}
        )

        data = tomllib.loads(config.to_toml())

        assert data["deploy"]["targets"][0]["name"] == "api"
        assert data["deploy"]["targets"][0]["build"] == "make"
        assert data["watchdog"]["max_crashes_per_hour"] == 10
