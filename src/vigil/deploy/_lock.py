"""Exclusive, non-blocking run lock for orchestration runs.

The lock is a persistent file at a well-known path. Ownership is the kernel
`flock` on that file; the file additionally records the owner's pid so that
operators (and the `lock` command) can see who holds it. A pid found in the
file when the flock is free was left by a run that died without releasing,
and is overwritten.

The file is never unlinked. Removing it would let a second run create a new
inode and lock that one while the first run still holds the old inode.
"""

from __future__ import annotations

import fcntl
import os
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TYPE_CHECKING, Self, final

from vigil.exceptions import LockError
from vigil.utils import OsLivenessCheck, create_null_logger, utc_now

if TYPE_CHECKING:
    from types import TracebackType

    from pendulum import DateTime
    from structlog.typing import FilteringBoundLogger

    from vigil.utils import LivenessCheck


@dataclass(frozen=True, slots=True)
class LockHolder:
    """Pid recorded in the lock file and whether that process is alive."""

    pid: int
    alive: bool


def _read_pid(f: IO[str]) -> int | None:
    _ = f.seek(0)
    raw = f.read().strip()
    if not raw:
        return None
    try:
        return int(raw.split()[0])
    except ValueError:
        return None


@final
class RunLock:
    """Guarantees at most one orchestration run at a time.

    Acquisition never blocks. Use as a context manager to release on every
    exit path:

        lock = RunLock(path)
        if lock.try_acquire():
            with lock:
                ...
    """

    __slots__ = ("_acquired_at", "_file", "_liveness", "_logger", "_path", "_pid")

    def __init__(
        self,
        path: Path | str,
        *,
        liveness: LivenessCheck | None = None,
        logger: FilteringBoundLogger | None = None,
        pid: int | None = None,
    ) -> None:
        """Initialize the lock without acquiring it.

        Args:
            path: Well-known lock file location.
            liveness: Liveness check for recorded pids.
            logger: Structured logger.
            pid: Pid recorded as owner. Defaults to the current process.
        """
        self._path = Path(path)
        self._liveness: LivenessCheck = liveness or OsLivenessCheck()
        self._logger = logger or create_null_logger()
        self._pid = pid if pid is not None else os.getpid()
        self._file: IO[str] | None = None
        self._acquired_at: DateTime | None = None

    @property
    def path(self) -> Path:
        """Return the lock file path."""
        return self._path

    @property
    def pid(self) -> int:
        """Return the pid recorded when this lock is held."""
        return self._pid

    @property
    def held(self) -> bool:
        """Return True while this instance owns the lock."""
        return self._file is not None

    @property
    def acquired_at(self) -> DateTime | None:
        """Return when the lock was acquired, if held."""
        return self._acquired_at

    def try_acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if the lock is now held by this instance, False if another
            run holds the flock.

        Raises:
            LockError: If the lock file cannot be opened or written.
        """
        if self._file is not None:
            return True

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            f = self._path.open("a+", encoding="utf-8")
        except OSError as e:
            msg = f"Cannot open lock file {self._path}: {e}"
            raise LockError(msg, path=self._path, cause=e) from e

        try:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                f.close()
                return False

            # Holding the flock proves no run owns the file, so any recorded pid
            # was left by a killed run. Its number may since have been reused.
            recorded = _read_pid(f)
            if recorded is not None and recorded != self._pid:
                self._logger.warning(
                    "stale_lock_reclaimed",
                    path=str(self._path),
                    stale_pid=recorded,
                    pid_in_use=self._liveness.is_alive(recorded),
                )

            _ = f.seek(0)
            _ = f.truncate()
            _ = f.write(f"{self._pid}\n")
            f.flush()
            os.fsync(f.fileno())
        except OSError as e:
            f.close()
            msg = f"Cannot write lock file {self._path}: {e}"
            raise LockError(msg, path=self._path, cause=e) from e

        self._file = f
        self._acquired_at = utc_now()
        self._logger.debug("lock_acquired", path=str(self._path), pid=self._pid)
        return True

    def release(self) -> None:
        """Release the lock. Does nothing if not held."""
        f = self._file
        if f is None:
            return
        self._file = None
        self._acquired_at = None
        try:
            _ = f.seek(0)
            _ = f.truncate()
            f.flush()
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        finally:
            f.close()
        self._logger.debug("lock_released", path=str(self._path), pid=self._pid)

    def holder(self) -> LockHolder | None:
        """Report the pid recorded in the lock file.

        Returns:
            The recorded owner, or None if the file is missing or empty.
        """
        try:
            with self._path.open(encoding="utf-8") as f:
                pid = _read_pid(f)
        except FileNotFoundError:
            return None
        except OSError as e:
            msg = f"Cannot read lock file {self._path}: {e}"
            raise LockError(msg, path=self._path, cause=e) from e
        if pid is None:
            return None
        return LockHolder(pid=pid, alive=self._liveness.is_alive(pid))

    def __enter__(self) -> Self:
        if self._file is None and not self.try_acquire():
            msg = f"Lock {self._path} is held by another run"
            raise LockError(msg, path=self._path)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()
