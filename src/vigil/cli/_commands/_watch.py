# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Vigil watch command - supervises a single program."""

from pathlib import Path
from typing import Annotated, Any

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from vigil.exceptions import ExecutableNotFoundError, SupervisorError
from vigil.supervisor import ConsoleOutputSink, LogOutputSink, Supervisor, TeeOutputSink

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

app = App(
    name="watch",
    help="Run a program and restart it whenever it crashes.",
    help_on_error=True,
)


@app.default
def watch(  # noqa: PLR0913
    executable: Annotated[str, Parameter(help="Program name or path to supervise.")],
    *args: Annotated[str, Parameter(help="Arguments passed to the program (after --).")],
    crash_log: Annotated[
        Path | None,
        Parameter(help="Append-only crash ledger file."),
    ] = None,
    restart_delay: Annotated[
        float | None,
        Parameter(help="Seconds to wait before restarting after a crash."),
    ] = None,
    max_crashes_per_hour: Annotated[
        int | None,
        Parameter(help="Crashes within the window that pause restarts."),
    ] = None,
    build_command: Annotated[
        str | None,
        Parameter(help="Shell command run once if the program cannot be found."),
    ] = None,
    capture_output: Annotated[
        bool,
        Parameter(help="Prefix the program's output instead of passing the terminal through."),
    ] = False,
) -> None:
    """Supervise a program until it exits cleanly or vigil is stopped.

    A non-zero exit or a death by signal is recorded in the crash ledger and
    followed by a restart. When too many crashes fall inside the trailing
    window, restarts are paused until the window clears. SIGINT or SIGTERM
    stops the program gracefully and exits with status 0.
    """
    ctx = CLIContext.get_current()

    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    if crash_log is not None:
        overrides["crash_log"] = crash_log
    if restart_delay is not None:
        overrides["restart_delay"] = restart_delay
    if max_crashes_per_hour is not None:
        overrides["max_crashes_per_hour"] = max_crashes_per_hour
    if build_command is not None:
        overrides["build_command"] = build_command
    if capture_output:
        overrides["capture_output"] = True
    config = ctx.config.watchdog.model_copy(update=overrides)

    logger = ctx.create_logger("watchdog")
    sink = TeeOutputSink([ConsoleOutputSink(Console(stderr=True)), LogOutputSink(logger)])
    supervisor = Supervisor(executable, args, config, output_sink=sink, logger=logger)

    try:
        exit_code = anyio.run(supervisor.run)
    except ExecutableNotFoundError as e:
        exit_with_error(str(e), ExitCode.NOT_FOUND)
    except SupervisorError as e:
        exit_with_error(str(e), ExitCode.INTERNAL_ERROR)

    if exit_code != ExitCode.SUCCESS:
        raise SystemExit(exit_code)
