"""Resolution of the supervised executable."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from vigil.exceptions import ExecutableNotFoundError
from vigil.utils import ScriptConfig, run_script, truncate_output

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def find_executable(
    executable: str,
    candidates: Sequence[str] = (),
) -> tuple[Path | None, tuple[str, ...]]:
    """Look for the executable without building anything.

    Lookup order:
    1. An explicit path (contains a path separator) is used as given.
    2. Each candidate path, in order.
    3. The name on PATH.

    Args:
        executable: Name or path of the program.
        candidates: Extra paths to try before PATH.

    Returns:
        The resolved absolute path (or None) and every location checked.
    """
    searched: list[str] = []

    if os.sep in executable or (os.altsep and os.altsep in executable):
        path = Path(executable).expanduser()
        searched.append(str(path))
        return (path.resolve() if _is_executable(path) else None), tuple(searched)

    for candidate in candidates:
        path = Path(candidate).expanduser()
        searched.append(str(path))
        if _is_executable(path):
            return path.resolve(), tuple(searched)

    searched.append(f"PATH:{executable}")
    found = shutil.which(executable)
    if found is not None:
        return Path(found).resolve(), tuple(searched)

    return None, tuple(searched)


def resolve_executable(
    executable: str,
    *,
    candidates: Sequence[str] = (),
    build_command: str | None = None,
    logger: FilteringBoundLogger | None = None,
) -> Path:
    """Resolve the executable, building it once as a fallback.

    Args:
        executable: Name or path of the program.
        candidates: Extra paths to try before PATH.
        build_command: Shell command run once if nothing resolves.
        logger: Logger for build progress.

    Returns:
        Absolute path of an executable file.

    Raises:
        ExecutableNotFoundError: If the program cannot be found or built.
    """
    path, searched = find_executable(executable, candidates)
    if path is not None:
        return path

    if build_command:
        if logger is not None:
            logger.info("executable_missing_building", executable=executable, command=build_command)
        result = run_script(ScriptConfig(command=build_command))
        if result.success:
            path, searched = find_executable(executable, candidates)
            if path is not None:
                if logger is not None:
                    logger.info("executable_built", executable=executable, path=str(path))
                return path
        elif logger is not None:
            logger.error(
                "executable_build_failed",
                executable=executable,
                error=result.describe(),
                stderr=truncate_output(result.stderr, 4096),
            )

    msg = f"Failed to find or build '{executable}' (searched: {', '.join(searched)})"
    raise ExecutableNotFoundError(msg, executable=executable, searched=searched)
