# pyright: reportUnusedCallResult=false
"""Vigil config command - prints the effective configuration."""

from typing import Annotated

from cyclopts import App, Parameter

from ._context import CLIContext
from ._shared import format_json

app = App(
    name="config",
    help="Show the effective configuration.",
    help_on_error=True,
)


@app.default
def show_config(
    *,
    as_json: Annotated[
        bool,
        Parameter(name="--json", help="Print as JSON instead of TOML."),
    ] = False,
    sources: Annotated[
        bool,
        Parameter(name="--sources", help="List the configuration sources that were merged."),
    ] = False,
) -> None:
    """Print defaults merged with the config file, environment and CLI."""
    config = CLIContext.get_current().config

    if sources:
        for source in config.sources:
            location = f" ({source.path})" if source.path is not None else ""
            print(f"{source.name.value}{location}")
        return

    output = format_json(config.to_dict()) if as_json else config.to_toml()
    print(output.rstrip())
