from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from vigil.cli import create_app

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from rich.console import Console


@pytest.fixture
def vigil_cli(console: Console) -> Callable[..., int]:
    """Run the CLI the way `main()` does and return the exit code."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 0
        return 0

    return _run


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write vigil.toml into the working directory."""

    def _write(content: str) -> Path:
        path = tmp_path / "vigil.toml"
        _ = path.write_text(content, encoding="utf-8")
        return path

    return _write
