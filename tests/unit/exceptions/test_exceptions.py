import json

import pytest

from eventtimer.exceptions import (
    ConfigError,
    EventStoreConfigError,
    EventStoreError,
    EventTimerError,
    InvalidEventError,
    TimerStateError,
)


def test_to_json() -> None:
    error = EventStoreError("MemEventStore", "backend unavailable")
    assert json.loads(error.to_json()) == {
        "store_id": "MemEventStore",
        "message": "backend unavailable",
    }


def test_from_json() -> None:
    serialized = json.dumps({"timer_id": "backups", "message": "already running"})
    error = EventTimerError.from_json("TimerStateError", serialized)
    assert isinstance(error, TimerStateError)
    assert error.timer_id == "backups"
    assert str(error) == "TimerStateError(backups): already running"


def test_from_json_nested_subclass() -> None:
    error = EventStoreConfigError("SQLiteEventStore", "unusable path")
    restored = EventTimerError.from_json("EventStoreConfigError", error.to_json())
    assert isinstance(restored, EventStoreError)
    assert restored.__dict__ == error.__dict__


def test_from_json_unknown_error() -> None:
    with pytest.raises(ValueError) as exc_info:
        EventTimerError.from_json("UnknownError", "{}")
    assert "Unknown error type: UnknownError" in str(exc_info.value)


def test_str_without_message() -> None:
    assert str(EventStoreError("RedisEventStore")) == "EventStoreError(RedisEventStore)"
    assert str(InvalidEventError("")) == "InvalidEventError('')"


def test_config_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        raise ConfigError("poll_interval_ms must be >= 0")
