from cistell import ConfigBase, ConfigField

from .config_base import ConfigEventTimerBase
from .config_event_store import (
    ConfigEventStore,
    ConfigEventStoreRedis,
    ConfigEventStoreSQLite,
)
from .config_timer import ConfigEventTimer

__all__ = [
    "ConfigBase",
    "ConfigField",
    "ConfigEventTimerBase",
    "ConfigEventTimer",
    "ConfigEventStore",
    "ConfigEventStoreSQLite",
    "ConfigEventStoreRedis",
]
