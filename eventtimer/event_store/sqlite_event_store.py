"""
SQLite-based implementation of the Event Store.

One row per event in the configured table. Every value travels as a bound
query parameter; only the table name is interpolated, and it is validated
as a plain identifier before the store is opened.
"""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from functools import cached_property
from typing import TYPE_CHECKING, Optional

from eventtimer.conf.config_event_store import ConfigEventStoreSQLite
from eventtimer.event import Event, EventType
from eventtimer.event_store.base_event_store import BaseEventStore
from eventtimer.exceptions import EventStoreConfigError
from eventtimer.util.sqlite_utils import get_sqlite_db_path, sqlite_connection

if TYPE_CHECKING:
    from eventtimer.types import EventId

_COLUMNS = 'id, name, timestamp, "interval", repeats, static'


def _row_to_event(row: tuple) -> Event:
    event_id, name, timestamp, interval, repeats, static = row
    return Event(
        name=name,
        timestamp=timestamp,
        type=EventType.STATIC if static else EventType.DYNAMIC,
        interval=interval,
        repeats=repeats,
        id=event_id,
    )


def _event_params(event: Event) -> tuple:
    return (
        event.name,
        event.timestamp,
        event.interval,
        event.repeats,
        1 if event.is_static else 0,
    )


class SQLiteEventStore(BaseEventStore):
    """
    SQLite-based implementation of the Event Store.

    Opens a short-lived connection per operation, so a CLI process can edit
    the schedule of a running timer sharing the same database file.
    """

    @cached_property
    def conf(self) -> ConfigEventStoreSQLite:
        return ConfigEventStoreSQLite(
            config_values=self.timer.config_values,
            config_filepath=self.timer.config_filepath,
        )

    @contextmanager
    def _conn(self, operation: str) -> Iterator[sqlite3.Connection]:
        self._check_valid()
        try:
            with sqlite_connection(self.sqlite_db_path) as conn:
                yield conn
        except sqlite3.Error as ex:
            raise self._error(f"{operation} failed: {ex}") from ex

    def _open(self) -> None:
        """Initialize the events table."""
        try:
            self.sqlite_db_path = get_sqlite_db_path(self.conf.sqlite_db_path)
            with sqlite_connection(self.sqlite_db_path) as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self.table_name} (
                        id INTEGER PRIMARY KEY,
                        name TEXT NOT NULL,
                        timestamp TEXT NOT NULL,
                        "interval" INTEGER NOT NULL,
                        repeats INTEGER NOT NULL,
                        static INTEGER NOT NULL
                    )
                    """
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS {self.table_name}_timestamp_idx "
                    f"ON {self.table_name} (timestamp, id)"
                )
        except (sqlite3.Error, OSError) as ex:
            raise EventStoreConfigError(
                self.store_id, f"Cannot open {self.conf.sqlite_db_path!r}: {ex}"
            ) from ex

    def insert(self, event: Event) -> "EventId":
        with self._conn("insert") as conn:
            cursor = conn.execute(
                f'INSERT INTO {self.table_name} (name, timestamp, "interval", repeats, static) '
                "VALUES (?, ?, ?, ?, ?)",
                _event_params(event),
            )
            event_id = cursor.lastrowid
        if event_id is None:
            raise self._error("insert did not return a row id")
        return event_id

    def remove(self, event_id: "EventId") -> bool:
        with self._conn("remove") as conn:
            cursor = conn.execute(
                f"DELETE FROM {self.table_name} WHERE id = ?", (event_id,)
            )
            return cursor.rowcount > 0

    def update(self, event_id: "EventId", event: Event) -> bool:
        with self._conn("update") as conn:
            cursor = conn.execute(
                f"UPDATE {self.table_name} "
                'SET name = ?, timestamp = ?, "interval" = ?, repeats = ?, static = ? '
                "WHERE id = ?",
                (*_event_params(event), event_id),
            )
            return cursor.rowcount > 0

    def get(self, event_id: "EventId") -> Optional[Event]:
        with self._conn("get") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM {self.table_name} WHERE id = ?", (event_id,)
            ).fetchone()
        return _row_to_event(row) if row else None

    def query_due(self, now: str) -> list[Event]:
        with self._conn("query_due") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM {self.table_name} "
                "WHERE timestamp <= ? ORDER BY timestamp, id",
                (now,),
            ).fetchall()
        return [_row_to_event(row) for row in rows]

    def query_next(self, limit: int, after: Optional[str] = None) -> list[Event]:
        with self._conn("query_next") as conn:
            if after is None:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM {self.table_name} "
                    "ORDER BY timestamp, id LIMIT ?",
                    (limit,),
                ).fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM {self.table_name} "
                    "WHERE timestamp > ? ORDER BY timestamp, id LIMIT ?",
                    (after, limit),
                ).fetchall()
        return [_row_to_event(row) for row in rows]

    def clear_dynamic(self) -> int:
        with self._conn("clear_dynamic") as conn:
            cursor = conn.execute(f"DELETE FROM {self.table_name} WHERE static = 0")
            return cursor.rowcount

    def clear_all(self) -> int:
        with self._conn("clear_all") as conn:
            cursor = conn.execute(f"DELETE FROM {self.table_name}")
            return cursor.rowcount
