"""Append-only crash ledger.

The ledger is a plain text file with one crash per line, written only by the
supervisor. It outlives the supervisor process so crash-loop detection keeps
working across supervisor restarts.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, final

from vigil.utils import utc_now

from ._models import CrashRecord

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pendulum import DateTime

    from vigil.utils import Clock

# Block size used when scanning the ledger backwards
_BLOCK_SIZE = 4096


def _iter_lines_reversed(path: Path, block_size: int = _BLOCK_SIZE) -> Iterator[str]:
    """Yield the lines of a file from last to first.

    Reads fixed-size blocks from the end so memory stays bounded by the block
    size plus the longest line.
    """
    with path.open("rb") as f:
        position = f.seek(0, os.SEEK_END)
        remainder = b""
        while position > 0:
            read_size = min(block_size, position)
            position -= read_size
            _ = f.seek(position)
            chunk = f.read(read_size) + remainder
            lines = chunk.split(b"\n")
            # First piece may be the tail of a line that starts in an earlier block
            remainder = lines.pop(0)
            for line in reversed(lines):
                if line:
                    yield line.decode("utf-8", errors="replace")
        if remainder:
            yield remainder.decode("utf-8", errors="replace")


@final
class CrashLedger:
    """Durable, append-only record of abnormal child exits.

    Records are never rewritten or removed. Counting only looks at the
    trailing window and stops scanning at the first record older than it,
    relying on the file being in append (chronological) order.
    """

    __slots__ = ("_clock", "_path")

    def __init__(self, path: Path | str, *, clock: Clock = utc_now) -> None:
        """Initialize the ledger.

        Args:
            path: Location of the ledger file. Created on first append.
            clock: Source of the current time.
        """
        self._path = Path(path)
        self._clock = clock

    @property
    def path(self) -> Path:
        """Return the ledger file path."""
        return self._path

    def append(self, record: CrashRecord) -> None:
        """Append a record and flush it to disk.

        Args:
            record: The crash to record.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            _ = f.write(record.to_line() + "\n")
            f.flush()
            os.fsync(f.fileno())

    def records(self) -> Iterator[CrashRecord]:
        """Stream every parseable record in file order."""
        if not self._path.exists():
            return
        with self._path.open(encoding="utf-8", errors="replace") as f:
            for line in f:
                record = CrashRecord.parse(line)
                if record is not None:
                    yield record

    def count_since(self, cutoff: DateTime) -> int:
        """Count records at or after the cutoff.

        Args:
            cutoff: Oldest timestamp that still counts.

        Returns:
            Number of records with timestamp >= cutoff.
        """
        if not self._path.exists():
            return 0

        count = 0
        for line in _iter_lines_reversed(self._path):
            record = CrashRecord.parse(line)
            if record is None:
                continue
            if record.timestamp < cutoff:
                break
            count += 1
        return count

    def count_recent(self, window: float) -> int:
        """Count records inside the trailing window.

        Args:
            window: Window length in seconds.

        Returns:
            Number of crashes in the last `window` seconds.
        """
        return self.count_since(self._clock() - timedelta(seconds=window))

