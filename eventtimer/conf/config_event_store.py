from cistell import ConfigField

from eventtimer.conf.config_base import ConfigEventTimerBase
from eventtimer.conf.config_redis import ConfigRedis
from eventtimer.conf.config_sqlite import ConfigSQLite


class ConfigEventStore(ConfigEventTimerBase):
    """
    Configuration shared by every Event Store.

    :cvar ConfigField[str] table_name:
        Name of the table (or key namespace) holding the scheduled events.
        Must be a plain identifier: letters, digits and underscores, not
        starting with a digit.
    """

    table_name = ConfigField("events")


class ConfigEventStoreSQLite(ConfigEventStore, ConfigSQLite):
    """Specific Configuration for the SQLite Event Store"""


class ConfigEventStoreRedis(ConfigEventStore, ConfigRedis):
    """Specific Configuration for the Redis Event Store"""
