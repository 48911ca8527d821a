"""
In-memory implementation of the Event Store.

Events live only as long as the process, so STATIC events are not really
preserved between runs. Suitable for development and testing purposes.
"""

import threading
from functools import cached_property
from typing import TYPE_CHECKING, Optional

from eventtimer.conf.config_event_store import ConfigEventStore
from eventtimer.event_store.base_event_store import BaseEventStore

if TYPE_CHECKING:
    from eventtimer.event import Event
    from eventtimer.timer import EventTimer
    from eventtimer.types import EventId


class MemEventStore(BaseEventStore):
    """
    In-memory implementation of the Event Store.

    Ids are assigned as one more than the highest id in use, like an SQLite
    ``INTEGER PRIMARY KEY`` column.
    """

    def __init__(self, timer: "EventTimer") -> None:
        self._events: dict[EventId, Event] = {}
        self._lock = threading.RLock()
        super().__init__(timer)

    @cached_property
    def conf(self) -> ConfigEventStore:
        return ConfigEventStore(
            config_values=self.timer.config_values,
            config_filepath=self.timer.config_filepath,
        )

    def _open(self) -> None:
        pass

    def insert(self, event: "Event") -> "EventId":
        self._check_valid()
        with self._lock:
            event_id = max(self._events, default=0) + 1
            stored = event.copy()
            stored.assign_id(event_id)
            self._events[event_id] = stored
            return event_id

    def remove(self, event_id: "EventId") -> bool:
        self._check_valid()
        with self._lock:
            return self._events.pop(event_id, None) is not None

    def update(self, event_id: "EventId", event: "Event") -> bool:
        self._check_valid()
        with self._lock:
            if event_id not in self._events:
                return False
            self._events[event_id] = event.replace(id=event_id)
            return True

    def get(self, event_id: "EventId") -> Optional["Event"]:
        self._check_valid()
        with self._lock:
            if stored := self._events.get(event_id):
                return stored.snapshot()
            return None

    def _sorted(self) -> list["Event"]:
        return sorted(self._events.values(), key=lambda e: (e.timestamp, e.id))

    def query_due(self, now: str) -> list["Event"]:
        self._check_valid()
        with self._lock:
            return [e.snapshot() for e in self._sorted() if e.timestamp <= now]

    def query_next(self, limit: int, after: Optional[str] = None) -> list["Event"]:
        self._check_valid()
        with self._lock:
            events = [e for e in self._sorted() if after is None or e.timestamp > after]
            return [e.snapshot() for e in events[:limit]]

    def clear_dynamic(self) -> int:
        self._check_valid()
        with self._lock:
            dynamic_ids = [k for k, e in self._events.items() if not e.is_static]
            for event_id in dynamic_ids:
                del self._events[event_id]
            return len(dynamic_ids)

    def clear_all(self) -> int:
        self._check_valid()
        with self._lock:
            removed = len(self._events)
            self._events.clear()
            return removed
