from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock, patch

import pytest

from eventtimer import Event, EventTimer
from eventtimer.alarm import ManualAlarmClock

if TYPE_CHECKING:
    from _pytest.fixtures import FixtureRequest

START = datetime(2016, 5, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def mock_redis_client() -> Generator["MagicMock", None, None]:
    """
    Mock Redis client to prevent Redis connections in tests.

    :yield: The mocked Redis class, ``return_value`` is the shared client
    """
    mock_client = MagicMock()
    pipeline_mock = MagicMock()
    pipeline_mock.execute.return_value = []
    mock_client.pipeline.return_value = pipeline_mock
    with patch("redis.Redis", return_value=mock_client) as redis_mock:
        yield redis_mock


class Notifications:
    """Notification sink recording every event it receives."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]


@pytest.fixture
def notifications() -> Notifications:
    return Notifications()


@pytest.fixture
def clock() -> ManualAlarmClock:
    return ManualAlarmClock(START)


def store_config(store: str, tmp_path: Path) -> dict[str, Any]:
    if store == "sqlite":
        return {
            "event_store_cls": "SQLiteEventStore",
            "sqlite_db_path": str(tmp_path / "events.db"),
        }
    return {"event_store_cls": "MemEventStore"}


def make_timer(
    clock: ManualAlarmClock,
    tmp_path: Path,
    store: str = "mem",
    **config_values: Any,
) -> EventTimer:
    config = {
        **store_config(store, tmp_path),
        "log_use_colors": False,
        **config_values,
    }
    return EventTimer(config_values=config, alarm_clock=clock)


@pytest.fixture(params=["mem", "sqlite"])
def timer(
    request: "FixtureRequest", clock: ManualAlarmClock, tmp_path: Path
) -> Generator[EventTimer, None, None]:
    """Poll mode timer (1 second) driven by the manual clock, for every local store."""
    timer = make_timer(clock, tmp_path, request.param, poll_interval_ms=1000)
    yield timer
    if timer.is_running:
        timer.stop()


@pytest.fixture(params=["mem", "sqlite"])
def alarm_timer(
    request: "FixtureRequest", clock: ManualAlarmClock, tmp_path: Path
) -> Generator[EventTimer, None, None]:
    """Alarm mode timer driven by the manual clock, for every local store."""
    timer = make_timer(clock, tmp_path, request.param, poll_interval_ms=0)
    yield timer
    if timer.is_running:
        timer.stop()
