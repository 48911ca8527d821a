"""
Fluent builder for configuring EventTimer instances.

Configuration values end up in the ``config_values`` of the timer, so a
config file or ``EVENTTIMER__*`` environment variables can still override
them at deployment. Callables and alarm clocks are not configuration and are
handed to the timer directly.
"""

from typing import TYPE_CHECKING, Any, Optional

from eventtimer.exceptions import ConfigError

if TYPE_CHECKING:
    from eventtimer.alarm import BaseAlarmClock
    from eventtimer.timer import EventTimer
    from eventtimer.types import Clock, LogSink, NotificationSink


class EventTimerBuilder:
    """
    A builder for creating and configuring EventTimer instances.

    :example:
    ```python
    timer = (
        EventTimerBuilder()
        .timer_id("backups")
        .sqlite("/var/lib/backups/events.db")
        .table_name("backup_events")
        .alarm_mode()
        .notification_sink(run_backup)
        .build()
    )

    # In-memory timer for tests
    timer = EventTimerBuilder().memory().poll_interval(100).build()
    ```
    """

    _VALID_LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]

    def __init__(self) -> None:
        self._config: dict[str, Any] = {}
        self._notification_sink: Optional["NotificationSink"] = None
        self._log_sink: Optional["LogSink"] = None
        self._alarm_clock: Optional["BaseAlarmClock"] = None
        self._clock: Optional["Clock"] = None

    @classmethod
    def create(cls, config_values: dict[str, Any]) -> "EventTimer":
        """
        Creates a timer straight from a dictionary of configuration values.

        :param dict[str, Any] config_values: Any field of the timer and store
            configuration classes, e.g. ``{"event_store_cls": "MemEventStore"}``.
        :return: The new, stopped timer. Check ``is_valid()`` before using it.
        """
        builder = cls()
        builder._config.update(config_values)
        return builder.build()

    def timer_id(self, timer_id: str) -> "EventTimerBuilder":
        """
        Set the id of the timer, used to name its logger.

        :param str timer_id: The timer id
        :return: The builder instance for method chaining
        """
        self._config["timer_id"] = timer_id
        return self

    def memory(self) -> "EventTimerBuilder":
        """
        Keep the events in memory.

        STATIC events are lost when the process ends, so this is meant for
        testing and development purposes.

        :return: The builder instance for method chaining
        """
        self._config["event_store_cls"] = "MemEventStore"
        return self

    def sqlite(self, sqlite_db_path: str = "") -> "EventTimerBuilder":
        """
        Keep the events in an SQLite database file.

        :param str sqlite_db_path: Path to the database file, empty for the
            default file in the temporary directory
        :return: The builder instance for method chaining
        """
        self._config.update(
            {"event_store_cls": "SQLiteEventStore", "sqlite_db_path": sqlite_db_path}
        )
        return self

    def redis(
        self, url: Optional[str] = None, db: Optional[int] = None
    ) -> "EventTimerBuilder":
        """
        Keep the events in Redis.

        :param Optional[str] url: The Redis URL, overrides any other connection setting
        :param Optional[int] db: The Redis database number
        :return: The builder instance for method chaining
        :raises ValueError: If both url and db are given
        """
        if url and db is not None:
            raise ValueError("Cannot specify both 'url' and 'db' parameters")
        self._config["event_store_cls"] = "RedisEventStore"
        if url:
            self._config["redis_url"] = url
        elif db is not None:
            self._config["redis_db"] = db
        return self

    def table_name(self, table_name: str) -> "EventTimerBuilder":
        """
        Set the table (or Redis key namespace) holding the events.

        :param str table_name: Letters, digits and underscores, not starting with a digit
        :return: The builder instance for method chaining
        """
        self._config["table_name"] = table_name
        return self

    def poll_interval(self, poll_interval_ms: int) -> "EventTimerBuilder":
        """
        Check for occurred events every ``poll_interval_ms`` milliseconds.

        :param int poll_interval_ms: Positive interval, 0 selects alarm mode
        :return: The builder instance for method chaining
        :raises ConfigError: If the interval is negative
        """
        if poll_interval_ms < 0:
            raise ConfigError(f"poll_interval_ms must be >= 0, got {poll_interval_ms}")
        self._config["poll_interval_ms"] = poll_interval_ms
        return self

    def alarm_mode(self) -> "EventTimerBuilder":
        """
        Wake up exactly at the nearest event instead of polling.

        :return: The builder instance for method chaining
        """
        self._config["poll_interval_ms"] = 0
        return self

    def retry_interval(self, retry_interval_ms: int) -> "EventTimerBuilder":
        """
        In alarm mode, wait ``retry_interval_ms`` after a store failure.

        :param int retry_interval_ms: Positive delay in milliseconds
        :return: The builder instance for method chaining
        """
        if retry_interval_ms <= 0:
            raise ConfigError(
                f"retry_interval_ms must be positive, got {retry_interval_ms}"
            )
        self._config["retry_interval_ms"] = retry_interval_ms
        return self

    def logging_level(self, level: str) -> "EventTimerBuilder":
        """
        Set the logging level of the timer.

        :param str level: The logging level ("debug", "info", "warning", "error", "critical")
        :return: The builder instance for method chaining
        :raises ValueError: If an invalid logging level is provided
        """
        level = level.lower()
        if level not in self._VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid logging level: {level}. Valid options are: {', '.join(self._VALID_LOG_LEVELS)}"
            )
        self._config["logging_level"] = level
        return self

    def notification_sink(self, sink: "NotificationSink") -> "EventTimerBuilder":
        self._notification_sink = sink
        return self

    def logger(self, sink: "LogSink") -> "EventTimerBuilder":
        self._log_sink = sink
        return self

    def alarm_clock(self, alarm_clock: "BaseAlarmClock") -> "EventTimerBuilder":
        self._alarm_clock = alarm_clock
        return self

    def clock(self, clock: "Clock") -> "EventTimerBuilder":
        self._clock = clock
        return self

    def custom_config(self, **kwargs: Any) -> "EventTimerBuilder":
        """
        Add arbitrary configuration values.

        :param Any kwargs: Custom configuration values to add
        :return: The builder instance for method chaining
        """
        self._config.update(kwargs)
        return self

    def build(self) -> "EventTimer":
        """
        Build and return a configured EventTimer instance.

        :return: A stopped EventTimer
        :raises ConfigError: If the configuration is invalid
        """
        from eventtimer.timer import EventTimer

        timer = EventTimer(
            config_values=dict(self._config),
            alarm_clock=self._alarm_clock,
            clock=self._clock,
        )
        if self._log_sink is not None:
            timer.set_logger(self._log_sink)
        if self._notification_sink is not None:
            timer.set_notification_sink(self._notification_sink)
        return timer
