# pyright: reportAny=false, reportUnknownArgumentType=false
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from vigil.config._loader import (
    _parse_env_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from vigil.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        content = """
[watchdog]
restart_delay = 2.5
max_crashes_per_hour = 4
"""
        path = Path("/etc/vigil/config.toml")
        fs.create_file(path, contents=content)

        result = read_toml_file(path)

        assert result == {"watchdog": {"restart_delay": 2.5, "max_crashes_per_hour": 4}}

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            read_toml_file(Path("/etc/vigil/missing.toml"))

    def test_config_load_error_includes_location(self, fs: FakeFilesystem) -> None:
        content = """[watchdog]
restart_delay = 1

[deploy
"""
        path = Path("/etc/vigil/broken.toml")
        fs.create_file(path, contents=content)

        with pytest.raises(ConfigLoadError) as exc_info:
            read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 4
        assert error.column is not None
        assert error.__cause__ is not None


class TestDeepMerge:
    def test_nested_dicts_are_merged(self) -> None:
        base = {"watchdog": {"restart_delay": 5.0, "window": 3600.0}}
        override = {"watchdog": {"restart_delay": 1.0}}

        assert deep_merge(base, override) == {
            "watchdog": {"restart_delay": 1.0, "window": 3600.0}
        }

    def test_lists_are_replaced(self) -> None:
        base = {"deploy": {"cleanup": ["a", "b"]}}
        override = {"deploy": {"cleanup": ["c"]}}

        assert deep_merge(base, override) == {"deploy": {"cleanup": ["c"]}}

    def test_type_mismatch_override_wins(self) -> None:
        assert deep_merge({"key": {"nested": 1}}, {"key": "flat"}) == {"key": "flat"}

    def test_inputs_are_not_modified(self) -> None:
        base = {"deploy": {"cleanup": ["a"]}}
        override = {"deploy": {"shell": "/bin/bash"}}

        result = deep_merge(base, override)
        result["deploy"]["cleanup"].append("b")

        assert base == {"deploy": {"cleanup": ["a"]}}
        assert override == {"deploy": {"shell": "/bin/bash"}}


class TestParseEnvValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("2.5", 2.5),
            ('["a", "b"]', ["a", "b"]),
            ("/tmp/crashes.log", "/tmp/crashes.log"),
            ("[not json", "[not json"),
        ],
    )
    def test_infers_type(self, raw: str, expected: object) -> None:
        assert _parse_env_value(raw) == expected


class TestParseEnvVars:
    def test_prefixed_variables_become_nested_keys(self) -> None:
        environ = {
            "VIGIL_WATCHDOG__RESTART_DELAY": "3",
            "VIGIL_LOGGING__LEVEL": "debug",
            "UNRELATED": "x",
        }

        result = parse_env_vars(environ=environ)

        assert result == {"watchdog": {"restart_delay": 3}, "logging": {"level": "debug"}}

    def test_non_config_variables_are_ignored(self) -> None:
        environ = {"VIGIL_DEBUG": "1", "VIGIL_LOG_LEVEL": "debug", "VIGIL_CONFIG": "/x"}

        assert parse_env_vars(environ=environ) == {}

    def test_legacy_variables(self) -> None:
        environ = {
            "CRASH_LOG": "/var/log/crashes.log",
            "RESTART_DELAY": "7",
            "MAX_CRASHES_PER_HOUR": "3",
        }

        result = parse_env_vars(environ=environ)

        assert result == {
            "watchdog": {
                "crash_log": "/var/log/crashes.log",
                "restart_delay": 7,
                "max_crashes_per_hour": 3,
            }
        }

    def test_prefixed_variables_win_over_legacy(self) -> None:
        environ = {"RESTART_DELAY": "7", "VIGIL_WATCHDOG__RESTART_DELAY": "1"}

        assert parse_env_vars(environ=environ) == {"watchdog": {"restart_delay": 1}}

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VIGIL_DEPLOY__SHELL", "/bin/bash")

        assert parse_env_vars() == {"deploy": {"shell": "/bin/bash"}}


class TestSetNestedKey:
    def test_creates_intermediate_dicts(self) -> None:
        d: dict[str, object] = {}

        set_nested_key(d, "watchdog.restart_delay", 1.0)

        assert d == {"watchdog": {"restart_delay": 1.0}}

    def test_replaces_non_dict_intermediate(self) -> None:
        d: dict[str, object] = {"watchdog": "oops"}

        set_nested_key(d, "watchdog.window", 60)

        assert d == {"watchdog": {"window": 60}}
