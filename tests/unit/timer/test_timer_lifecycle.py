from datetime import timedelta
from pathlib import Path

import pytest

from eventtimer import INFINITE_REPEAT, CleanupPolicy, Event, EventTimer, EventType, TimerState
from eventtimer.alarm import ManualAlarmClock
from eventtimer.exceptions import (
    ConfigError,
    InvalidTimerError,
    NotificationSinkNotSetError,
    TimerStateError,
)
from eventtimer.util.timestamps import format_timestamp
from tests.conftest import START, Notifications, make_timer


def at(offset_ms: int) -> str:
    return format_timestamp(START + timedelta(milliseconds=offset_ms))


def test_initial_state(timer: EventTimer) -> None:
    assert timer.state == TimerState.STOPPED
    assert not timer.is_running
    assert timer.is_valid()
    assert timer.last_error == ""


def test_start_requires_sink(timer: EventTimer) -> None:
    with pytest.raises(NotificationSinkNotSetError):
        timer.start()
    assert not timer.is_running


def test_start_and_stop(timer: EventTimer, notifications: Notifications) -> None:
    timer.set_notification_sink(notifications)
    timer.start()
    assert timer.state == TimerState.RUNNING
    with pytest.raises(TimerStateError):
        timer.start()
    timer.stop()
    assert timer.state == TimerState.STOPPED
    with pytest.raises(TimerStateError):
        timer.stop()


def test_restart_after_stop(timer: EventTimer, notifications: Notifications) -> None:
    timer.set_notification_sink(notifications)
    timer.start()
    timer.stop()
    timer.start(CleanupPolicy.NOTIFY)
    assert timer.is_running


def test_start_invalid_timer(
    clock: ManualAlarmClock, tmp_path: Path, notifications: Notifications
) -> None:
    timer = make_timer(clock, tmp_path, "sqlite", table_name="not valid")
    timer.set_notification_sink(notifications)
    assert not timer.is_valid()
    with pytest.raises(InvalidTimerError):
        timer.start()


def test_sink_must_be_callable(timer: EventTimer) -> None:
    with pytest.raises(TypeError):
        timer.set_notification_sink("not callable")  # type: ignore[arg-type]


def test_negative_poll_interval(clock: ManualAlarmClock, tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        make_timer(clock, tmp_path, poll_interval_ms=-1)


def test_unknown_store_class(clock: ManualAlarmClock) -> None:
    with pytest.raises(ConfigError) as exc_info:
        EventTimer(config_values={"event_store_cls": "PaperEventStore"}, alarm_clock=clock)
    assert "PaperEventStore" in str(exc_info.value)


def test_repeating_event_three_ticks(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    event = Event("foo", at(1000), EventType.STATIC, interval=1000, repeats=2)
    event_id = timer.add_event(event)
    timer.set_notification_sink(notifications)
    timer.start(CleanupPolicy.CLEAR)
    assert notifications.events == []

    clock.advance(1000)
    stored = timer.get_event(event_id)  # type: ignore[arg-type]
    assert stored.repeats == 1
    assert stored.timestamp == at(2000)

    clock.advance(1000)
    clock.advance(1000)
    assert not timer.get_event(event_id).is_found  # type: ignore[arg-type]
    assert [e.id for e in notifications.events] == [event_id] * 3
    assert [e.repeats for e in notifications.events] == [2, 1, 0]
    assert [e.timestamp for e in notifications.events] == [at(1000), at(2000), at(3000)]


def test_expired_single_shot_notify(timer: EventTimer, notifications: Notifications) -> None:
    timer.add_event(Event("expired", at(-5000), EventType.STATIC))
    timer.set_notification_sink(notifications)
    timer.start(CleanupPolicy.NOTIFY)
    assert notifications.names == ["expired"]
    assert timer.next_events(10) == []


def test_expired_single_shot_clear(timer: EventTimer, notifications: Notifications) -> None:
    timer.add_event(Event("expired", at(-5000), EventType.STATIC))
    timer.set_notification_sink(notifications)
    timer.start(CleanupPolicy.CLEAR)
    assert notifications.events == []
    assert timer.next_events(10) == []


def test_missed_occurrences_notified_once(
    timer: EventTimer, notifications: Notifications
) -> None:
    event_id = timer.add_event(
        Event("backup", at(-10_500), EventType.STATIC, 1000, INFINITE_REPEAT)
    )
    timer.set_notification_sink(notifications)
    timer.start(CleanupPolicy.NOTIFY)
    assert notifications.names == ["backup"]
    assert notifications.events[0].timestamp == at(-10_500)
    stored = timer.get_event(event_id)  # type: ignore[arg-type]
    assert stored.timestamp == at(500)
    assert stored.repeats == INFINITE_REPEAT


def test_dynamic_events_cleared_on_start(
    timer: EventTimer, notifications: Notifications
) -> None:
    dynamic_id = timer.add_event(Event("dynamic", at(60_000), EventType.DYNAMIC))
    static_id = timer.add_event(Event("static", at(60_000), EventType.STATIC))
    timer.set_notification_sink(notifications)
    timer.start(CleanupPolicy.NOTIFY)
    assert not timer.get_event(dynamic_id).is_found  # type: ignore[arg-type]
    assert timer.get_event(static_id).is_found  # type: ignore[arg-type]
    assert notifications.events == []


def test_expired_dynamic_event_is_not_notified(
    timer: EventTimer, notifications: Notifications
) -> None:
    timer.add_event(Event("dynamic", at(-1000), EventType.DYNAMIC))
    timer.set_notification_sink(notifications)
    timer.start(CleanupPolicy.NOTIFY)
    assert notifications.events == []


def test_tick_notifies_in_timestamp_order(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    timer.set_notification_sink(notifications)
    timer.start()
    timer.add_event(Event("third", at(900)))
    timer.add_event(Event("first", at(100)))
    timer.add_event(Event("second", at(100)))
    clock.advance(1000)
    assert notifications.names == ["first", "second", "third"]


def test_stop_cancels_wake_loop(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    timer.set_notification_sink(notifications)
    timer.start()
    timer.add_event(Event("foo", at(500)))
    timer.stop()
    assert clock.pending == []
    clock.advance(5000)
    assert notifications.events == []
    assert timer.get_event(1).is_found


def test_tick_while_stopped_does_nothing(timer: EventTimer) -> None:
    timer.add_event(Event("foo", at(-500)))
    assert timer.tick() == []
    assert timer.get_event(1).is_found


def test_tick_with_explicit_time(timer: EventTimer, notifications: Notifications) -> None:
    timer.set_notification_sink(notifications)
    timer.start()
    timer.add_event(Event("foo", at(2500)))
    assert timer.tick(START + timedelta(milliseconds=2499)) == []
    occurred = timer.tick(START + timedelta(milliseconds=2500))
    assert [e.name for e in occurred] == ["foo"]
    assert notifications.names == ["foo"]


def test_sink_receives_detached_snapshots(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    timer.set_notification_sink(notifications)
    timer.start()
    event_id = timer.add_event(Event("foo", at(100), interval=1000, repeats=5))
    clock.advance(1000)
    notifications.events[0].name = "changed"
    assert timer.get_event(event_id).name == "foo"  # type: ignore[arg-type]


def test_sink_can_add_events(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    added: list[int | None] = []

    def sink(event: Event) -> None:
        notifications(event)
        if event.name == "parent":
            added.append(timer.add_event(Event("child", at(1500))))

    timer.set_notification_sink(sink)
    timer.start()
    timer.add_event(Event("parent", at(500)))
    clock.advance(1000)
    assert len(added) == 1 and added[0] is not None
    assert timer.get_event(added[0]).name == "child"
    clock.advance(1000)
    assert notifications.names == ["parent", "child"]


def test_sink_can_remove_events(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    def sink(event: Event) -> None:
        notifications(event)
        timer.remove_event(2)

    timer.set_notification_sink(sink)
    timer.start()
    timer.add_event(Event("first", at(100)))
    timer.add_event(Event("second", at(1500)))
    clock.advance(3000)
    assert notifications.names == ["first"]


def test_sink_can_stop_timer(
    timer: EventTimer, clock: ManualAlarmClock, notifications: Notifications
) -> None:
    def sink(event: Event) -> None:
        notifications(event)
        timer.stop()

    timer.set_notification_sink(sink)
    timer.start()
    timer.add_event(Event("first", at(100)))
    timer.add_event(Event("second", at(200)))
    clock.advance(1000)
    assert notifications.names == ["first"]
    assert not timer.is_running
    # both were processed before notifying
    assert timer.next_events(10) == []
