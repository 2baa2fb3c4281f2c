# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Raw configuration sources: TOML files and environment variables.

Everything here works on plain dictionaries. Validation happens later, when
the merged dictionary is handed to the pydantic models.
"""

from __future__ import annotations

import copy
import os
import tomllib
from typing import TYPE_CHECKING, Any

import orjson

from vigil.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ENV_PREFIX = "VIGIL_"

# Unprefixed variables understood by the legacy watchdog shell script
LEGACY_ENV_VARS: dict[str, str] = {
    "CRASH_LOG": "watchdog.crash_log",
    "RESTART_DELAY": "watchdog.restart_delay",
    "MAX_CRASHES_PER_HOUR": "watchdog.max_crashes_per_hour",
}

# First characters of values worth handing to the JSON decoder
_JSON_LEADERS = frozenset("-0123456789[")


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Load a TOML configuration file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file is not valid TOML. The error carries the
            line and column reported by the parser.
    """
    content = path.read_bytes().decode("utf-8")
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Combine two configuration layers into a new dictionary.

    Tables present in both layers are merged key by key. Any other value in
    `override` (scalars, arrays, or a table replacing a scalar) replaces the
    value in `base` outright. Neither argument is modified and the result
    shares no mutable state with them.

    Args:
        base: Lower precedence layer.
        override: Higher precedence layer.

    Returns:
        The merged layer.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect configuration values from the environment.

    `VIGIL_WATCHDOG__RESTART_DELAY=2` sets `watchdog.restart_delay`: the
    prefix is dropped, `__` separates table from key, and names are
    lowercased. Variables without a `__` (`VIGIL_DEBUG`, `VIGIL_LOG_LEVEL`,
    `VIGIL_CONFIG`) control the CLI itself and are skipped.

    The legacy `CRASH_LOG`, `RESTART_DELAY` and `MAX_CRASHES_PER_HOUR`
    variables are read first, so a prefixed variable for the same key wins.

    Args:
        prefix: Prefix of configuration variables.
        environ: Mapping to read instead of `os.environ`.

    Returns:
        Nested dictionary of the values found.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    legacy = [(path, env[name]) for name, path in LEGACY_ENV_VARS.items() if name in env]
    prefixed = [
        (name.removeprefix(prefix).replace("__", ".").lower(), raw)
        for name, raw in env.items()
        if name.startswith(prefix) and "__" in name.removeprefix(prefix)
    ]
    for path, raw in legacy + prefixed:
        set_nested_key(values, path, _parse_env_value(raw))

    return values


def _parse_env_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Convert an environment string to a bool, number, list or string.

    Booleans are matched case-insensitively. Numbers and arrays are decoded as
    JSON. Anything that fails to decode stays a string.
    """
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    if value[:1] in _JSON_LEADERS:
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError:
            return value
    return value


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Assign `value` at a dotted path, creating tables along the way.

    A non-table value sitting on the path is replaced by a table.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "deploy.shell", "/bin/bash")
        >>> d
        {'deploy': {'shell': '/bin/bash'}}
    """
    *tables, leaf = key_path.split(".")
    node = d
    for table in tables:
        child = node.get(table)
        if not isinstance(child, dict):
            child = node[table] = {}
        node = child
    node[leaf] = value
