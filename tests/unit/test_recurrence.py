from datetime import datetime, timedelta

import pytest

from eventtimer import INFINITE_REPEAT, Event, EventType
from eventtimer.exceptions import InvalidEventError
from eventtimer.recurrence import Removed, Updated, advance, elapsed_occurrences
from eventtimer.util.timestamps import format_timestamp

T0 = datetime(2016, 5, 1, 12, 0, 0)


def make_event(interval: int, repeats: int, due: datetime = T0) -> Event:
    return Event("foo", format_timestamp(due), EventType.STATIC, interval, repeats, id=1)


def step_by_step(event: Event, now: datetime) -> Removed | Updated:
    """Reference loop, one occurrence at a time."""
    t, r = event.due, event.repeats
    while t <= now:
        if r == 0:
            return Removed(event)
        t += timedelta(milliseconds=event.interval)
        if r != INFINITE_REPEAT:
            r -= 1
    return Updated(event.replace(timestamp=format_timestamp(t), repeats=r))


def test_not_due_is_unchanged() -> None:
    event = make_event(1000, 2)
    outcome = advance(event, T0 - timedelta(milliseconds=1))
    assert outcome == Updated(event)


def test_single_shot_due_is_removed() -> None:
    event = make_event(0, 0)
    assert advance(event, T0) == Removed(event)


def test_invalid_single_shot_raises() -> None:
    event = Event("foo", format_timestamp(T0), interval=0, repeats=1)
    with pytest.raises(InvalidEventError):
        advance(event, T0)


def test_one_occurrence() -> None:
    outcome = advance(make_event(1000, 2), T0)
    assert isinstance(outcome, Updated)
    assert outcome.occurrences == 1
    assert outcome.event.repeats == 1
    assert outcome.event.timestamp == format_timestamp(T0 + timedelta(seconds=1))
    assert outcome.event.id == 1


def test_last_repeat_is_removed() -> None:
    event = make_event(1000, 0)
    assert advance(event, T0 + timedelta(milliseconds=500)) == Removed(event)


def test_finite_series_removed_after_repeats_plus_one() -> None:
    repeats, interval = 3, 1000
    event = make_event(interval, repeats)
    now = T0
    for _ in range(repeats):
        outcome = advance(event, now)
        assert isinstance(outcome, Updated)
        event = outcome.event
        now += timedelta(milliseconds=interval)
    assert isinstance(advance(event, now), Removed)


def test_catch_up_matches_step_by_step_removal() -> None:
    repeats, interval = 3, 1000
    event = make_event(interval, repeats)
    now = T0 + timedelta(milliseconds=(repeats + 2) * interval)
    assert advance(event, now) == step_by_step(event, now)
    assert isinstance(advance(event, now), Removed)


@pytest.mark.parametrize("repeats", [1, 2, 5, 10])
@pytest.mark.parametrize("elapsed_ms", [0, 1, 999, 1000, 2500, 4000, 12_001])
def test_catch_up_equivalence(repeats: int, elapsed_ms: int) -> None:
    event = make_event(1000, repeats)
    now = T0 + timedelta(milliseconds=elapsed_ms)
    closed_form = advance(event, now)
    reference = step_by_step(event, now)
    if isinstance(reference, Removed):
        assert isinstance(closed_form, Removed)
    else:
        assert isinstance(closed_form, Updated)
        assert closed_form.event == reference.event


def test_infinite_never_removed() -> None:
    event = make_event(1000, INFINITE_REPEAT)
    now = T0 + timedelta(days=3650)
    outcome = advance(event, now)
    assert isinstance(outcome, Updated)
    assert outcome.event.repeats == INFINITE_REPEAT
    assert outcome.event.due > now
    assert outcome.event.due - now <= timedelta(seconds=1)


def test_reapplying_never_goes_back() -> None:
    now = T0 + timedelta(milliseconds=2500)
    first = advance(make_event(1000, 5), now)
    assert isinstance(first, Updated)
    second = advance(first.event, now)
    assert isinstance(second, Updated)
    assert second.event.timestamp >= first.event.timestamp
    assert second == Updated(first.event)


def test_elapsed_occurrences() -> None:
    assert elapsed_occurrences(T0, 1000, T0 - timedelta(milliseconds=1)) == 0
    assert elapsed_occurrences(T0, 1000, T0) == 1
    assert elapsed_occurrences(T0, 1000, T0 + timedelta(milliseconds=1999)) == 2
    assert elapsed_occurrences(T0, 1000, T0 + timedelta(milliseconds=2000)) == 3


def test_occurrence_after_datetime_max_removes_event() -> None:
    last = datetime(9999, 12, 31, 23, 59, 59, 999000)
    event = make_event(1000, 3, due=last)
    assert event.is_valid()
    assert advance(event, last) == Removed(event)
