"""Configuration file discovery."""

import os
from pathlib import Path

import platformdirs

PROJECT_CONFIG_NAME = "vigil.toml"


def get_user_config_path() -> Path:
    """Get the path to the user-level configuration file.

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path("vigil") / "config.toml"


def find_config_file(cwd: Path | None = None) -> Path | None:
    """Find the configuration file to load.

    Lookup order:
    1. VIGIL_CONFIG environment variable
    2. vigil.toml in the working directory
    3. The user config file

    Args:
        cwd: Directory to look in. Defaults to the current directory.

    Returns:
        Path to the first existing file, or None.
    """
    env_path = os.environ.get("VIGIL_CONFIG")
    if env_path:
        return Path(env_path).expanduser()

    local = (cwd or Path.cwd()) / PROJECT_CONFIG_NAME
    if local.is_file():
        return local

    user = get_user_config_path()
    if user.is_file():
        return user

    return None
