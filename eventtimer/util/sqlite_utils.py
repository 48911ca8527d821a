"""
SQLite utilities for the EventTimer stores.

Provides small helpers for creating connections and validating the
configured database path and table name.
"""

import logging
import re
import sqlite3
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DB_FILENAME = "eventtimer.db"
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def create_sqlite_connection(sqlite_db_path: str | Path) -> sqlite3.Connection:
    """
    Create and return a configured sqlite3.Connection.

    The connection uses WAL journal mode and a busy timeout so a timer and a
    CLI process sharing the file are less likely to raise transient
    "database is locked" errors.

    :param sqlite_db_path: Path to the SQLite database file
    :return: A configured sqlite3.Connection
    """
    conn = sqlite3.connect(str(sqlite_db_path), timeout=30.0, check_same_thread=False)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA busy_timeout=30000")
    except sqlite3.DatabaseError as e:
        # Non-fatal: some environments may not accept all pragmas
        logger.warning("PRAGMA configuration failed: %s", e)
    return conn


@contextmanager
def sqlite_connection(sqlite_db_path: str | Path) -> Iterator[sqlite3.Connection]:
    """
    Short-lived connection that commits on success, rolls back on error and
    is always closed.

    :param sqlite_db_path: Path to the SQLite database file
    """
    conn = create_sqlite_connection(sqlite_db_path)
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def get_sqlite_db_path(sqlite_db_path: str) -> str:
    """
    Get the SQLite database path, creating its parent directory.

    :param sqlite_db_path: The configured database path, empty for the default
    :return: The database path to use
    """
    if not sqlite_db_path:
        sqlite_db_path = str(Path(tempfile.gettempdir()) / DEFAULT_DB_FILENAME)

    sqlite_db_path_obj = Path(sqlite_db_path)
    sqlite_db_path_obj.parent.mkdir(parents=True, exist_ok=True)
    return str(sqlite_db_path_obj)


def is_valid_identifier(name: str) -> bool:
    """
    Checks a table name can be safely interpolated in a statement.

    Identifiers cannot be bound as query parameters, so only plain names made
    of letters, digits and underscores are accepted.
    """
    return isinstance(name, str) and bool(_IDENTIFIER_RE.match(name))
