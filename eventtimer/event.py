"""
The Event value object: one scheduled occurrence record.

An event is created by the caller with an unassigned id, receives a
permanent id when the Event Store accepts it, and is then rolled forward by
the recurrence engine (see :mod:`eventtimer.recurrence`) every time it
occurs until its repeats are exhausted.
"""

import dataclasses
import json
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum, auto
from typing import Any, Final, Optional

from eventtimer.exceptions import EventIdAlreadyAssignedError, InvalidEventError
from eventtimer.util.timestamps import (
    TIME_FORMAT,
    format_timestamp,
    is_valid_timestamp,
    parse_timestamp,
)

INFINITE_REPEAT: Final[int] = 2**32 - 1
UNASSIGNED_ID: Final[None] = None


class EventType(StrEnum):
    """
    Lifetime of an event across timer restarts.

    :cvar STATIC:
        Preserved between application runs. Only removed when its repeats are
        exhausted or when explicitly deleted.
    :cvar DYNAMIC:
        Discarded every time the timer starts, whether it fired or not.
    """

    STATIC = auto()
    DYNAMIC = auto()


@dataclass(eq=True)
class Event:
    """
    A single event scheduled with the EventTimer.

    :param str name: Display label, must not be empty. Not unique.
    :param str timestamp: First (or next) time of occurrence in the
        ``yyyy-MM-dd hh:mm:ss:zzz`` format.
    :param EventType type: STATIC or DYNAMIC.
    :param int interval: Milliseconds between repeats. 0 means single shot.
    :param int repeats: Remaining repeats. ``INFINITE_REPEAT`` repeats forever.
        Must be 0 for single shot events.
    :param Optional[int] id: Assigned by the Event Store on insertion.
    """

    TIME_FORMAT = TIME_FORMAT

    name: str
    timestamp: str
    type: EventType = EventType.DYNAMIC
    interval: int = 0
    repeats: int = 0
    id: Optional[int] = UNASSIGNED_ID

    @classmethod
    def at(
        cls,
        name: str,
        when: datetime,
        type: EventType = EventType.DYNAMIC,
        interval: int = 0,
        repeats: int = 0,
    ) -> "Event":
        """Creates an event due at the given datetime."""
        return cls(name, format_timestamp(when), type, interval, repeats)

    @classmethod
    def not_found(cls) -> "Event":
        """The event returned when looking up an id that is not scheduled."""
        return cls(name="", timestamp="")

    @property
    def is_found(self) -> bool:
        return self.id is not UNASSIGNED_ID

    @property
    def is_static(self) -> bool:
        return self.type == EventType.STATIC

    @property
    def is_infinite(self) -> bool:
        return self.repeats == INFINITE_REPEAT

    @property
    def due(self) -> datetime:
        """The timestamp as a datetime, raises ValueError if it is malformed."""
        return parse_timestamp(self.timestamp)

    def validation_errors(self) -> list[str]:
        """Lists every validity rule the event breaks (empty when valid)."""
        errors = []
        if not self.name:
            errors.append("name must not be empty")
        if not is_valid_timestamp(self.timestamp):
            errors.append(f"timestamp {self.timestamp!r} must match {TIME_FORMAT}")
        if not isinstance(self.interval, int) or self.interval < 0:
            errors.append(f"interval must be a non-negative integer, got {self.interval!r}")
        if not isinstance(self.repeats, int) or not 0 <= self.repeats <= INFINITE_REPEAT:
            errors.append(
                f"repeats must be between 0 and INFINITE_REPEAT, got {self.repeats!r}"
            )
        elif self.interval == 0 and self.repeats != 0:
            errors.append("single shot events (interval 0) cannot have repeats")
        return errors

    def is_valid(self) -> bool:
        """
        Checks the event can be handed to the timer.

        :return: True if the name is not empty, the timestamp is in the
            canonical format and a zero interval comes with zero repeats.
        """
        return not self.validation_errors()

    def validate(self) -> None:
        """
        Raises if the event is not valid.

        :raises InvalidEventError: Describing every broken rule.
        """
        if errors := self.validation_errors():
            raise InvalidEventError(self.name, "; ".join(errors))

    def assign_id(self, event_id: int) -> None:
        """
        Sets the id given by the Event Store.

        :param int event_id: The permanent id of the event.
        :raises EventIdAlreadyAssignedError: If the event already has an id.
        """
        if self.id is not UNASSIGNED_ID:
            raise EventIdAlreadyAssignedError(self.id, event_id)
        if event_id < 0:
            raise ValueError(f"Event ids are non-negative, got {event_id}")
        self.id = event_id

    def copy(self) -> "Event":
        """A new event with the same values and an unassigned id."""
        return dataclasses.replace(self, id=UNASSIGNED_ID)

    def replace(self, **changes: Any) -> "Event":
        """A new event with the given fields changed, keeping the id."""
        return dataclasses.replace(self, **changes)

    def snapshot(self) -> "Event":
        """A detached copy including the id, safe to hand to callers."""
        return dataclasses.replace(self)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "interval": self.interval,
            "repeats": self.repeats,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_json_dict())

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "Event":
        return cls(
            name=data["name"],
            timestamp=data["timestamp"],
            type=EventType(data["type"]),
            interval=int(data["interval"]),
            repeats=int(data["repeats"]),
            id=data.get("id"),
        )

    @classmethod
    def from_json(cls, serialized: str) -> "Event":
        return cls.from_json_dict(json.loads(serialized))

    def __str__(self) -> str:
        repeats = "forever" if self.is_infinite else self.repeats
        return (
            f"Event(id={self.id}, name={self.name!r}, at={self.timestamp}, "
            f"{self.type}, interval={self.interval}ms, repeats={repeats})"
        )
