from eventtimer.event_store.base_event_store import BaseEventStore
from eventtimer.event_store.mem_event_store import MemEventStore
from eventtimer.event_store.redis_event_store import RedisEventStore
from eventtimer.event_store.sqlite_event_store import SQLiteEventStore

__all__ = ["BaseEventStore", "MemEventStore", "RedisEventStore", "SQLiteEventStore"]
