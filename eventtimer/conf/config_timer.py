from cistell import ConfigField

from eventtimer.conf.config_base import ConfigEventTimerBase


class ConfigEventTimer(ConfigEventTimerBase):
    """
    Main config of the EventTimer.

    :cvar str timer_id:
        The id of the timer, used to name its logger.
    :cvar str event_store_cls:
        The Event Store class to use ('MemEventStore', 'SQLiteEventStore'
        or 'RedisEventStore').
    :cvar int poll_interval_ms:
        How often the timer checks for occurred events, in milliseconds.
        The value 0 selects alarm mode: instead of polling, the timer sets a
        single alarm at the timestamp of the nearest scheduled event.
    :cvar int retry_interval_ms:
        In alarm mode, delay before checking the schedule again after the
        Event Store failed to report the nearest event.
    :cvar str logging_level:
        The logging level of the timer ('info', 'warning', 'error', etc.).
    :cvar bool log_use_colors:
        If True, log records written to the console use ANSI colors.
    """

    timer_id = ConfigField("eventtimer")
    event_store_cls = ConfigField("SQLiteEventStore")
    poll_interval_ms = ConfigField(1000)
    retry_interval_ms = ConfigField(1000)
    logging_level = ConfigField("info")
    log_use_colors = ConfigField(True)
