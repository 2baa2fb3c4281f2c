from __future__ import annotations

import io
from typing import TYPE_CHECKING

import orjson
import pytest

from vigil.deploy import RevisionStore
from vigil.exceptions import StateError
from vigil.utils import create_logger

if TYPE_CHECKING:
    from pathlib import Path

    from tests.unit.conftest import ManualClock


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "deploy-state.json"


class TestRevisionStore:
    def test_empty_when_missing(self, state_file: Path) -> None:
        store = RevisionStore(state_file)

        assert store.get("api") is None
        assert store.all() == {}

    def test_set_then_get(self, state_file: Path, clock: ManualClock) -> None:
        store = RevisionStore(state_file, clock=clock)

        store.set("api", "a" * 40)

        assert store.get("api") == "a" * 40
        data = orjson.loads(state_file.read_bytes())
        assert data == {
            "targets": {
                "api": {"revision": "a" * 40, "applied_at": clock().to_iso8601_string()}
            }
        }

    def test_set_keeps_other_targets(self, state_file: Path) -> None:
        store = RevisionStore(state_file)

        store.set("api", "1")
        store.set("web", "2")
        store.set("api", "3")

        assert store.all() == {"api": "3", "web": "2"}

    def test_survives_new_instance(self, state_file: Path) -> None:
        RevisionStore(state_file).set("api", "1")

        assert RevisionStore(state_file).get("api") == "1"

    def test_no_temporary_files_left(self, state_file: Path) -> None:
        RevisionStore(state_file).set("api", "1")

        assert [p.name for p in state_file.parent.iterdir()] == [state_file.name]

    def test_corrupt_file_reads_empty_and_logs(self, state_file: Path) -> None:
        state_file.parent.mkdir(parents=True)
        _ = state_file.write_text("{not json")
        stream = io.StringIO()
        store = RevisionStore(state_file, logger=create_logger(level="info", stream=stream))

        assert store.get("api") is None
        assert orjson.loads(stream.getvalue().splitlines()[0])["event"] == "revision_store_corrupt"

    def test_corrupt_file_is_replaced_on_write(self, state_file: Path) -> None:
        state_file.parent.mkdir(parents=True)
        _ = state_file.write_text("[]")
        store = RevisionStore(state_file)

        store.set("api", "1")

        assert store.all() == {"api": "1"}

    def test_ignores_malformed_entries(self, state_file: Path) -> None:
        state_file.parent.mkdir(parents=True)
        _ = state_file.write_text('{"targets": {"api": "oops", "web": {"revision": 5}}}')
        store = RevisionStore(state_file)

        assert store.get("api") is None
        assert store.get("web") is None
        assert store.all() == {}

    def test_write_failure_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        _ = blocker.write_text("")
        store = RevisionStore(blocker / "state.json")

        with pytest.raises(StateError) as exc_info:
            store.set("api", "1")

        assert exc_info.value.path == blocker / "state.json"
