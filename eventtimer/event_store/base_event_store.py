"""
Base class and contract of the Event Store.

The Event Store is the durable home of the scheduled events. The timer only
keeps events in memory while processing them; everything else lives here.

Contract:

- ``insert`` assigns a new integer id, unique within the store.
- ``query_due`` and ``query_next`` return events sorted by timestamp, ties
  broken by id (which follows insertion order).
- Operations raise :class:`~eventtimer.exceptions.EventStoreError` on
  failure and leave the stored data unchanged.
- Timestamps are exchanged in the canonical text format, whose
  lexicographic order is chronological.
"""

import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from eventtimer.exceptions import EventStoreConfigError, EventStoreError
from eventtimer.util.sqlite_utils import is_valid_identifier

if TYPE_CHECKING:
    from eventtimer.conf.config_event_store import ConfigEventStore
    from eventtimer.event import Event
    from eventtimer.timer import EventTimer
    from eventtimer.types import EventId


class BaseEventStore(ABC):
    """
    Base class for the Event Store component.

    Subclasses open their backend in :meth:`_open`. A failure there does not
    raise: the store becomes invalid, which the timer reports through
    ``is_valid``.

    :param EventTimer timer: The timer owning this store.
    """

    def __init__(self, timer: "EventTimer") -> None:
        self.timer = timer
        self.store_id = f"{self.__class__.__name__}-{uuid.uuid4().hex[:8]}"
        self._last_error = ""
        self._valid = False
        try:
            if not is_valid_identifier(self.table_name):
                raise EventStoreConfigError(
                    self.store_id, f"Invalid table name {self.table_name!r}"
                )
            self._open()
            self._valid = True
            self.timer.logger.debug(
                f"Opened event store {self.store_id} on table {self.table_name}"
            )
        except EventStoreError as ex:
            self._last_error = str(ex)
            self.timer.logger.error(f"Event store {self.store_id} is invalid: {ex}")

    @property
    @abstractmethod
    def conf(self) -> "ConfigEventStore":
        """Access to the store configuration."""

    @property
    def table_name(self) -> str:
        return self.conf.table_name

    def is_valid(self) -> bool:
        """True if the backend was opened and the schema is in place."""
        return self._valid

    @property
    def last_error(self) -> str:
        """Message of the latest failure of this store, empty if none."""
        return self._last_error

    def _error(self, message: str) -> EventStoreError:
        """Records a failure and returns the error to raise."""
        error = EventStoreError(self.store_id, message)
        self._last_error = str(error)
        return error

    def _check_valid(self) -> None:
        if not self._valid:
            raise self._error(f"Event store is not valid: {self._last_error}")

    @abstractmethod
    def _open(self) -> None:
        """
        Connects to the backend and creates the schema if absent.

        :raises EventStoreConfigError: If the backend cannot be used.
        """

    @abstractmethod
    def insert(self, event: "Event") -> "EventId":
        """
        Stores a new event.

        The given event is not modified; the caller assigns the returned id.

        :param Event event: A valid event with an unassigned id.
        :return: The id assigned to the stored event.
        """

    @abstractmethod
    def remove(self, event_id: "EventId") -> bool:
        """
        Deletes an event.

        :param EventId event_id: Id of the event.
        :return: True if a row was deleted, False if there was no such event.
        """

    @abstractmethod
    def update(self, event_id: "EventId", event: "Event") -> bool:
        """
        Replaces name, timestamp, type, interval and repeats of an event.

        :param EventId event_id: Id of the stored event.
        :param Event event: Event holding the new values, its id is ignored.
        :return: True if a row was updated, False if there was no such event.
        """

    @abstractmethod
    def get(self, event_id: "EventId") -> Optional["Event"]:
        """
        Looks up an event.

        :param EventId event_id: Id of the event.
        :return: The stored event or None if there is no such event.
        """

    @abstractmethod
    def query_due(self, now: str) -> list["Event"]:
        """
        Events whose timestamp is at or before ``now``.

        :param str now: Canonical timestamp.
        :return: Events in ascending timestamp order, ties by id.
        """

    @abstractmethod
    def query_next(self, limit: int, after: Optional[str] = None) -> list["Event"]:
        """
        Soonest events, optionally only those strictly after a timestamp.

        :param int limit: Maximum number of events to return.
        :param Optional[str] after: Canonical timestamp lower bound (exclusive).
            If None, expired events are included too.
        :return: Events in ascending timestamp order, ties by id.
        """

    @abstractmethod
    def clear_dynamic(self) -> int:
        """
        Removes every DYNAMIC event.

        :return: The number of removed events.
        """

    @abstractmethod
    def clear_all(self) -> int:
        """
        Removes every event.

        :return: The number of removed events.
        """

