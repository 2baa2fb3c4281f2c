# pyright: reportExplicitAny=false
"""Exit codes and output helpers shared by the CLI commands."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

if TYPE_CHECKING:
    from rich.console import Console

# Anything orjson can serialise at the top level of a command's output
FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_with_error",
    "format_json",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Process exit codes of the `vigil` commands.

    `TARGET_FAILED` and `SKIPPED` are deploy outcomes that cron wrappers can
    branch on; the others follow the usual error categories.
    """

    SUCCESS = 0
    CONFIG_ERROR = 1
    TARGET_FAILED = 2
    SKIPPED = 3
    NOT_FOUND = 4
    INTERNAL_ERROR = 5


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Serialise command output as JSON text.

    Paths and datetimes are handled by orjson's passthrough rules, with
    `str` as the fallback for anything else.
    """
    import orjson  # noqa: PLC0415

    option = orjson.OPT_SORT_KEYS | (orjson.OPT_INDENT_2 if indent else 0)
    return orjson.dumps(data, default=str, option=option).decode()


def get_error_console() -> Console:
    """Return a console that writes to stderr."""
    from rich.console import Console  # noqa: PLC0415

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Report `message` on the error console and exit.

    The message is escaped, so paths or command output containing square
    brackets print literally.

    Raises:
        SystemExit: Always, with `code`.
    """
    from rich.markup import escape  # noqa: PLC0415

    (console or get_error_console()).print(
        f"[bold red]error:[/bold red] {escape(message)}", highlight=False
    )
    raise SystemExit(code)
