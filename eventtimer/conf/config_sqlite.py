"""
SQLite configuration for the EventTimer event stores.
"""

from cistell import ConfigField

from eventtimer.conf.config_base import ConfigEventTimerBase


class ConfigSQLite(ConfigEventTimerBase):
    """
    Configuration for SQLite-based components.

    Configuration Fields:
    :cvar ConfigField[str] sqlite_db_path:
        Path to the SQLite database file. An empty string indicates
        that a default path in the system temporary directory should be used.
    """

    sqlite_db_path = ConfigField("")
