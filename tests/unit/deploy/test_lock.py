from __future__ import annotations

import io
import os
from typing import TYPE_CHECKING

import orjson
import pytest

from vigil.deploy import LockHolder, RunLock
from vigil.exceptions import LockError
from vigil.utils import StaticLivenessCheck, create_logger

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "run" / "deploy.lock"


class TestTryAcquire:
    def test_acquires_free_lock(self, lock_path: Path) -> None:
        lock = RunLock(lock_path)

        assert lock.try_acquire()
        assert lock.held
        assert lock.acquired_at is not None
        assert lock_path.read_text() == f"{os.getpid()}\n"
        lock.release()

    def test_second_instance_is_refused(self, lock_path: Path) -> None:
        first = RunLock(lock_path)
        second = RunLock(lock_path)

        assert first.try_acquire()
        assert not second.try_acquire()
        assert not second.held
        first.release()

    def test_acquire_is_idempotent(self, lock_path: Path) -> None:
        lock = RunLock(lock_path)

        assert lock.try_acquire()
        assert lock.try_acquire()
        lock.release()

    def test_free_after_release(self, lock_path: Path) -> None:
        first = RunLock(lock_path)
        second = RunLock(lock_path)
        assert first.try_acquire()
        first.release()

        assert second.try_acquire()
        second.release()

    def test_stale_pid_is_reclaimed(self, lock_path: Path) -> None:
        lock_path.parent.mkdir(parents=True)
        _ = lock_path.write_text("999999\n")
        stream = io.StringIO()
        lock = RunLock(
            lock_path,
            liveness=StaticLivenessCheck(),
            logger=create_logger(level="info", stream=stream),
            pid=1234,
        )

        assert lock.try_acquire()
        assert lock_path.read_text() == "1234\n"
        entry = orjson.loads(stream.getvalue().splitlines()[0])
        assert entry["event"] == "stale_lock_reclaimed"
        assert entry["stale_pid"] == 999999
        lock.release()

    def test_reused_pid_of_killed_run_is_reclaimed(self, lock_path: Path) -> None:
        lock_path.parent.mkdir(parents=True)
        _ = lock_path.write_text("999999\n")
        stream = io.StringIO()
        lock = RunLock(
            lock_path,
            liveness=StaticLivenessCheck({999999}),
            logger=create_logger(level="info", stream=stream),
            pid=1234,
        )

        assert lock.try_acquire()
        assert lock_path.read_text() == "1234\n"
        entry = orjson.loads(stream.getvalue().splitlines()[0])
        assert entry["event"] == "stale_lock_reclaimed"
        assert entry["stale_pid"] == 999999
        assert entry["pid_in_use"] is True
        lock.release()

    def test_garbage_content_is_overwritten(self, lock_path: Path) -> None:
        lock_path.parent.mkdir(parents=True)
        _ = lock_path.write_text("not a pid\n")
        lock = RunLock(lock_path, liveness=StaticLivenessCheck(), pid=1234)

        assert lock.try_acquire()
        assert lock_path.read_text() == "1234\n"
        lock.release()

    def test_unusable_location_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        _ = blocker.write_text("")

        with pytest.raises(LockError) as exc_info:
            _ = RunLock(blocker / "deploy.lock").try_acquire()

        assert exc_info.value.path == blocker / "deploy.lock"


class TestRelease:
    def test_clears_pid_but_keeps_file(self, lock_path: Path) -> None:
        lock = RunLock(lock_path)
        assert lock.try_acquire()

        lock.release()

        assert lock_path.exists()
        assert lock_path.read_text() == ""
        assert not lock.held
        assert lock.acquired_at is None

    def test_release_without_acquire_is_noop(self, lock_path: Path) -> None:
        RunLock(lock_path).release()

        assert not lock_path.exists()


class TestHolder:
    def test_missing_file(self, lock_path: Path) -> None:
        assert RunLock(lock_path).holder() is None

    def test_empty_file(self, lock_path: Path) -> None:
        lock_path.parent.mkdir(parents=True)
        lock_path.touch()

        assert RunLock(lock_path).holder() is None

    def test_reports_recorded_pid(self, lock_path: Path) -> None:
        lock = RunLock(lock_path, liveness=StaticLivenessCheck({1234}), pid=1234)
        assert lock.try_acquire()

        assert RunLock(lock_path, liveness=StaticLivenessCheck({1234})).holder() == LockHolder(
            pid=1234, alive=True
        )
        lock.release()

    def test_reports_dead_pid(self, lock_path: Path) -> None:
        lock_path.parent.mkdir(parents=True)
        _ = lock_path.write_text("4321\n")

        assert RunLock(lock_path, liveness=StaticLivenessCheck()).holder() == LockHolder(
            pid=4321, alive=False
        )


class TestContextManager:
    def test_releases_on_exit(self, lock_path: Path) -> None:
        with RunLock(lock_path) as lock:
            assert lock.held

        assert not lock.held
        assert RunLock(lock_path).try_acquire()

    def test_releases_on_error(self, lock_path: Path) -> None:
        lock = RunLock(lock_path)

        with pytest.raises(RuntimeError), lock:
            raise RuntimeError

        assert not lock.held

    def test_contended_lock_raises(self, lock_path: Path) -> None:
        holder = RunLock(lock_path)
        assert holder.try_acquire()

        with pytest.raises(LockError), RunLock(lock_path):
            pass

        holder.release()
