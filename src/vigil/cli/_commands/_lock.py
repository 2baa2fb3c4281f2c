# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Vigil lock command - reports the deployment run lock."""

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

from vigil.deploy import RunLock
from vigil.exceptions import LockError

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

app = App(
    name="lock",
    help="Show who holds the deployment run lock.",
    help_on_error=True,
)


@app.default
def lock(
    *,
    lock_file: Annotated[
        Path | None,
        Parameter(help="Run lock file (overrides configuration)."),
    ] = None,
) -> None:
    """Print the lock file path and the recorded holder."""
    path = lock_file or CLIContext.get_current().config.deploy.lock_file
    try:
        holder = RunLock(path).holder()
    except LockError as e:
        exit_with_error(str(e), ExitCode.INTERNAL_ERROR)

    print(f"Lock file: {path}")
    if holder is None:
        print("Lock is free")
    elif holder.alive:
        print(f"Held by pid {holder.pid}")
    else:
        print(f"Stale: pid {holder.pid} is not running")
