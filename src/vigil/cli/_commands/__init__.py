"""Vigil CLI commands."""
# pyright: reportUnusedCallResult=false

from __future__ import annotations

from typing import TYPE_CHECKING

from ._config import app as config_app
from ._context import CLIContext
from ._crashes import app as crashes_app
from ._deploy import app as deploy_app
from ._lock import app as lock_app
from ._shared import ExitCode, exit_with_error, format_json, get_error_console
from ._watch import app as watch_app

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "CLIContext",
    "ExitCode",
    "config_app",
    "crashes_app",
    "deploy_app",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "lock_app",
    "register_commands",
    "watch_app",
]


def register_commands(app: App) -> None:
    app.command(watch_app)
    app.command(deploy_app)
    app.command(crashes_app)
    app.command(lock_app)
    app.command(config_app)
