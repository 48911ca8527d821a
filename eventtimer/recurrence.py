"""
Recurrence engine: rolls an event forward past the occurrences that are due.

The engine is a pure function of an event and a reference instant. It never
touches the Event Store; the timer persists whatever the engine decides.

Given ``t = event.timestamp`` and ``r = event.repeats`` the outcome matches
the loop::

    while t <= now:
        if r == 0:
            return Removed(event)
        t += interval
        if r != INFINITE_REPEAT:
            r -= 1
    return Updated(event with timestamp t and repeats r)

It is evaluated in closed form, so catching up an event that was missed
for a long time costs the same as a single step.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union

from eventtimer.event import INFINITE_REPEAT, Event
from eventtimer.exceptions import InvalidEventError
from eventtimer.util.timestamps import format_timestamp, millis_between


@dataclass(frozen=True)
class Removed:
    """The event has no occurrences left and must be deleted."""

    event: Event


@dataclass(frozen=True)
class Updated:
    """The event keeps occurring; ``event`` holds its advanced values."""

    event: Event
    occurrences: int = 0


Advancement = Union[Removed, Updated]


def elapsed_occurrences(due: datetime, interval: int, now: datetime) -> int:
    """
    Counts the occurrences of a series in ``[due, now]``.

    :param datetime due: First occurrence of the series.
    :param int interval: Milliseconds between occurrences, must be positive.
    :param datetime now: The reference instant.
    :return: 0 if ``due`` is still in the future.
    """
    if due > now:
        return 0
    return millis_between(due, now) // interval + 1


def advance(event: Event, now: datetime) -> Advancement:
    """
    Computes how far the event has to be rolled forward at ``now``.

    :param Event event: A valid event, normally one whose timestamp is due.
    :param datetime now: The reference instant, millisecond precision.
    :return: ``Removed`` when the event has no occurrence after ``now``,
        otherwise ``Updated`` with the new timestamp (strictly after ``now``)
        and the remaining repeats. An event still in the future comes back
        unchanged.
    :raises InvalidEventError: If the event is single shot with pending repeats.
    """
    if event.interval == 0 and event.repeats != 0:
        raise InvalidEventError(
            event.name, "single shot events (interval 0) cannot have repeats"
        )
    due = event.due
    if due > now:
        return Updated(event)
    if event.repeats == 0:
        return Removed(event)

    steps = elapsed_occurrences(due, event.interval, now)
    if event.repeats != INFINITE_REPEAT and steps > event.repeats:
        return Removed(event)

    repeats = event.repeats
    if repeats != INFINITE_REPEAT:
        repeats -= steps
    try:
        next_due = due + timedelta(milliseconds=steps * event.interval)
    except OverflowError:
        # the next occurrence falls after datetime.max
        return Removed(event)
    return Updated(
        event.replace(timestamp=format_timestamp(next_due), repeats=repeats),
        occurrences=steps,
    )
