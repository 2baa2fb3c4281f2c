# pyright: reportUnusedCallResult=false
"""Vigil crashes command - inspects the crash ledger."""

from typing import Annotated

from cyclopts import App, Parameter

from vigil.supervisor import CrashLedger

from ._context import CLIContext

app = App(
    name="crashes",
    help="Show recent crashes recorded by the watchdog.",
    help_on_error=True,
)


@app.default
def crashes(
    *,
    window: Annotated[
        float | None,
        Parameter(help="Trailing window in seconds (default: configured window)."),
    ] = None,
    show_all: Annotated[
        bool,
        Parameter(name="--all", help="List every recorded crash."),
    ] = False,
) -> None:
    """Print the crash ledger location and the crash count in the window."""
    config = CLIContext.get_current().config.watchdog
    ledger = CrashLedger(config.crash_log)
    effective_window = window if window is not None else config.window

    count = ledger.count_recent(effective_window)
    print(f"Crash log: {ledger.path}")
    print(f"Crashes in the last {effective_window:g}s: {count} (threshold {config.max_crashes_per_hour})")

    if show_all:
        for record in ledger.records():
            print(record.to_line())
