"""The command-line interface for Vigil."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from vigil.config import load_config
from vigil.exceptions import ConfigError

from ._commands import CLIContext, ExitCode, exit_with_error, register_commands

_HELP = "Self-healing process supervisor and pull-based deployment agent."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="vigil",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Enable debug logging")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch Vigil with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Enable debug logging.
            config: Explicit path to config file.
        """
        cli_overrides: dict[str, object] | None = None
        if verbose:
            cli_overrides = {"logging": {"level": "debug"}}

        try:
            loaded_config = load_config(config_path=config, cli_overrides=cli_overrides)
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)

        CLIContext.set_current(
            CLIContext(config=loaded_config, verbose=verbose, config_path=config)
        )
        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `vigil` CLI."""
    app = create_app()
    app.meta()
