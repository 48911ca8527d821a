"""
Redis-backed implementation of the Event Store.

Layout, for a table ``events``:

- ``__eventtimer__:events:event:<id>``: hash with the event fields;
- ``__eventtimer__:events:schedule``: sorted set with every member at score
  0, so it is ordered lexicographically by ``<timestamp>|<padded id>``;
- ``__eventtimer__:events:dynamic``: set of the DYNAMIC event ids;
- ``__eventtimer__:events:id_seq``: id counter.

Event names are only ever stored as hash values, never used in keys.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from functools import cached_property
from typing import TYPE_CHECKING, Optional

import redis

from eventtimer.conf.config_event_store import ConfigEventStoreRedis
from eventtimer.event import Event, EventType
from eventtimer.event_store.base_event_store import BaseEventStore
from eventtimer.exceptions import EventStoreConfigError
from eventtimer.util.redis_client import get_redis_client
from eventtimer.util.redis_keys import Key, member_event_id, schedule_member

if TYPE_CHECKING:
    from eventtimer.types import EventId


def _event_mapping(event: Event) -> dict[str, str]:
    return {
        "name": event.name,
        "timestamp": event.timestamp,
        "type": event.type.value,
        "interval": str(event.interval),
        "repeats": str(event.repeats),
    }


def _mapping_to_event(event_id: int, mapping: dict[str, str]) -> Event:
    return Event(
        name=mapping["name"],
        timestamp=mapping["timestamp"],
        type=EventType(mapping["type"]),
        interval=int(mapping["interval"]),
        repeats=int(mapping["repeats"]),
        id=event_id,
    )


class RedisEventStore(BaseEventStore):
    """
    Redis-backed implementation of the Event Store.

    Multi-key changes run in a transactional pipeline so the hash, the
    schedule and the dynamic set never disagree.
    """

    @cached_property
    def conf(self) -> ConfigEventStoreRedis:
        return ConfigEventStoreRedis(
            config_values=self.timer.config_values,
            config_filepath=self.timer.config_filepath,
        )

    @cached_property
    def key(self) -> Key:
        return Key(self.table_name)

    @cached_property
    def client(self) -> redis.Redis:
        self.timer.logger.debug(f"Initializing Redis client for {self.store_id}")
        return get_redis_client(self.conf)

    def _open(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as ex:
            raise EventStoreConfigError(
                self.store_id, f"Cannot connect to Redis: {ex}"
            ) from ex

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        self._check_valid()
        try:
            yield
        except redis.RedisError as ex:
            raise self._error(f"{operation} failed: {ex}") from ex

    def _load(self, event_ids: list[int]) -> list[Event]:
        if not event_ids:
            return []
        pipe = self.client.pipeline(transaction=False)
        for event_id in event_ids:
            pipe.hgetall(self.key.event(event_id))
        mappings = pipe.execute()
        return [
            _mapping_to_event(event_id, mapping)
            for event_id, mapping in zip(event_ids, mappings)
            if mapping
        ]

    def _delete_in(self, pipe: "redis.client.Pipeline", event: Event) -> None:
        if event.id is None:
            raise self._error(f"Cannot delete event {event.name!r} without an id")
        pipe.delete(self.key.event(event.id))
        pipe.zrem(self.key.schedule(), schedule_member(event.timestamp, event.id))
        pipe.srem(self.key.dynamic(), event.id)

    def insert(self, event: Event) -> "EventId":
        with self._guard("insert"):
            event_id = int(self.client.incr(self.key.id_sequence()))
            pipe = self.client.pipeline(transaction=True)
            pipe.hset(self.key.event(event_id), mapping=_event_mapping(event))
            pipe.zadd(self.key.schedule(), {schedule_member(event.timestamp, event_id): 0})
            if not event.is_static:
                pipe.sadd(self.key.dynamic(), event_id)
            pipe.execute()
            return event_id

    def remove(self, event_id: "EventId") -> bool:
        with self._guard("remove"):
            if not (stored := self._load([event_id])):
                return False
            pipe = self.client.pipeline(transaction=True)
            self._delete_in(pipe, stored[0])
            pipe.execute()
            return True

    def update(self, event_id: "EventId", event: Event) -> bool:
        with self._guard("update"):
            if not (stored := self._load([event_id])):
                return False
            pipe = self.client.pipeline(transaction=True)
            pipe.zrem(self.key.schedule(), schedule_member(stored[0].timestamp, event_id))
            pipe.hset(self.key.event(event_id), mapping=_event_mapping(event))
            pipe.zadd(self.key.schedule(), {schedule_member(event.timestamp, event_id): 0})
            if event.is_static:
                pipe.srem(self.key.dynamic(), event_id)
            else:
                pipe.sadd(self.key.dynamic(), event_id)
            pipe.execute()
            return True

    def get(self, event_id: "EventId") -> Optional[Event]:
        with self._guard("get"):
            stored = self._load([event_id])
            return stored[0] if stored else None

    def query_due(self, now: str) -> list[Event]:
        with self._guard("query_due"):
            # '}' sorts right after '|', so every member of timestamp `now` is included
            members = self.client.zrangebylex(self.key.schedule(), "-", f"({now}}}")
            return self._load([member_event_id(m) for m in members])

    def query_next(self, limit: int, after: Optional[str] = None) -> list[Event]:
        with self._guard("query_next"):
            lower = "-" if after is None else f"({after}}}"
            members = self.client.zrangebylex(
                self.key.schedule(), lower, "+", start=0, num=limit
            )
            return self._load([member_event_id(m) for m in members])

    def clear_dynamic(self) -> int:
        with self._guard("clear_dynamic"):
            dynamic_ids = sorted(int(i) for i in self.client.smembers(self.key.dynamic()))
            events = self._load(dynamic_ids)
            pipe = self.client.pipeline(transaction=True)
            for event in events:
                self._delete_in(pipe, event)
            pipe.delete(self.key.dynamic())
            pipe.execute()
            return len(events)

    def clear_all(self) -> int:
        with self._guard("clear_all"):
            members = self.client.zrange(self.key.schedule(), 0, -1)
            pipe = self.client.pipeline(transaction=True)
            for member in members:
                pipe.delete(self.key.event(member_event_id(member)))
            pipe.delete(self.key.schedule(), self.key.dynamic(), self.key.id_sequence())
            pipe.execute()
            return len(members)
