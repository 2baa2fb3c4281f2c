from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import pendulum
import pytest
from pendulum import DateTime


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


@dataclass(slots=True)
class ManualClock:
    """Clock that only moves when told to."""

    now: DateTime

    def __call__(self) -> DateTime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(pendulum.datetime(2026, 10, 17, 12, 0, 0, tz="UTC"))
