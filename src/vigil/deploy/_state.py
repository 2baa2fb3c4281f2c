# pyright: reportAny=false
"""Applied-revision store.

The store is a small JSON document recording, per working copy, the last revision
that was successfully built and deployed:

    {"targets": {"/srv/app": {"revision": "<sha>", "applied_at": "<iso8601>"}}}

Writes are atomic (temporary file in the same directory, then rename).
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, final

import orjson

from vigil.exceptions import StateError
from vigil.utils import create_null_logger, utc_now

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from vigil.utils import Clock


@final
class RevisionStore:
    """Last applied revision per deployment target."""

    __slots__ = ("_clock", "_logger", "_path")

    def __init__(
        self,
        path: Path | str,
        *,
        logger: FilteringBoundLogger | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            path: JSON file location. Created on first write.
            logger: Structured logger.
            clock: Source of `applied_at` timestamps.
        """
        self._path = Path(path)
        self._logger = logger or create_null_logger()
        self._clock = clock

    @property
    def path(self) -> Path:
        """Return the state file path."""
        return self._path

    def _read(self) -> dict[str, dict[str, Any]]:  # pyright: ignore[reportExplicitAny]
        try:
            content = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as e:
            self._logger.warning("revision_store_unreadable", path=str(self._path), error=str(e))
            return {}

        try:
            data = orjson.loads(content)
        except orjson.JSONDecodeError as e:
            self._logger.warning("revision_store_corrupt", path=str(self._path), error=str(e))
            return {}

        targets = data.get("targets") if isinstance(data, dict) else None
        if not isinstance(targets, dict):
            self._logger.warning("revision_store_corrupt", path=str(self._path), error="missing 'targets'")
            return {}
        return {key: entry for key, entry in targets.items() if isinstance(entry, dict)}

    def _write(self, targets: dict[str, dict[str, Any]]) -> None:  # pyright: ignore[reportExplicitAny]
        content = orjson.dumps({"targets": targets}, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
        temp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self._path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                _ = f.write(content)
                temp_path = Path(f.name)
            _ = temp_path.replace(self._path)
        except OSError as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            msg = f"Failed to write revision store {self._path}: {e}"
            raise StateError(msg, path=self._path, cause=e) from e

    def get(self, key: str) -> str | None:
        """Return the last applied revision stored under `key`, if any."""
        revision = self._read().get(key, {}).get("revision")
        return revision if isinstance(revision, str) else None

    def set(self, key: str, revision: str) -> None:
        """Record a revision as applied under `key`.

        Raises:
            StateError: If the store cannot be written.
        """
        targets = self._read()
        targets[key] = {"revision": revision, "applied_at": self._clock().to_iso8601_string()}
        self._write(targets)

    def all(self) -> dict[str, str]:
        """Return every recorded revision keyed by working copy path."""
        return {
            key: entry["revision"]
            for key, entry in self._read().items()
            if isinstance(entry.get("revision"), str)
        }
