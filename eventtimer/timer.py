"""
The EventTimer: schedules events, catches up missed ones and notifies a sink.

Life of a timer::

    timer = EventTimer(config_values={"sqlite_db_path": "events.db"})
    timer.set_notification_sink(print)
    timer.add_event(Event.at("backup", tomorrow, EventType.STATIC, 86_400_000, INFINITE_REPEAT))
    timer.start(CleanupPolicy.NOTIFY)
    ...
    timer.stop()

The timer wakes up either periodically (poll mode, ``poll_interval_ms > 0``)
or exactly at the nearest event (alarm mode, ``poll_interval_ms == 0``).
On every wake up it asks the Event Store for the due events, rolls each one
forward with :func:`~eventtimer.recurrence.advance`, persists the outcome and
only then notifies the sink.

Store failures never raise out of the timer: they are logged, kept in
:attr:`EventTimer.last_error` and reported through the return values.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import StrEnum, auto
from functools import cached_property
from logging import Logger
from typing import Any, Optional

from eventtimer.alarm import BaseAlarm, BaseAlarmClock, ThreadAlarmClock
from eventtimer.conf.config_timer import ConfigEventTimer
from eventtimer.event import UNASSIGNED_ID, Event
from eventtimer.event_store.base_event_store import BaseEventStore
from eventtimer.exceptions import (
    ConfigError,
    EventIdAlreadyAssignedError,
    EventStoreError,
    InvalidTimerError,
    NotificationSinkNotSetError,
    TimerStateError,
)
from eventtimer.recurrence import Removed, advance
from eventtimer.types import Clock, EventId, LogSink, NotificationSink
from eventtimer.util.log import TimerLogAdapter, create_logger, set_log_sink
from eventtimer.util.subclasses import get_subclass
from eventtimer.util.timestamps import (
    format_timestamp,
    millis_between,
    parse_timestamp,
    truncate_to_millis,
)


class CleanupPolicy(StrEnum):
    """
    What happens to the events that expired while the timer was stopped.

    :cvar CLEAR:
        Expired events are rolled forward (or removed) silently.
    :cvar NOTIFY:
        Expired events are rolled forward (or removed) and the sink is
        notified once for each distinct event.
    """

    CLEAR = auto()
    NOTIFY = auto()


class TimerState(StrEnum):
    STOPPED = auto()
    RUNNING = auto()


class EventTimer:
    """
    Schedules events in an Event Store and notifies them when they occur.

    :param Optional[str] timer_id:
        The id of the timer, defaults to the configured ``timer_id``.
    :param Optional[dict[str, Any]] config_values:
        A dictionary of configuration values.
    :param Optional[str] config_filepath:
        A path to a configuration file.
    :param Optional[BaseAlarmClock] alarm_clock:
        Source of time and alarms. Defaults to a :class:`ThreadAlarmClock`.
    :param Optional[Clock] clock:
        Overrides the alarm clock as the source of the current time.

    ```{note}
    Only one timer should run against the same table at the same time:
    two instances catching up the same events could notify them twice or
    drop an occurrence. This is not enforced.
    ```
    """

    def __init__(
        self,
        timer_id: Optional[str] = None,
        config_values: Optional[dict[str, Any]] = None,
        config_filepath: Optional[str] = None,
        alarm_clock: Optional[BaseAlarmClock] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._timer_id = timer_id
        self.config_values = config_values
        self.config_filepath = config_filepath
        self.alarm_clock = alarm_clock or ThreadAlarmClock()
        self._clock = clock or self.alarm_clock.now
        self._state = TimerState.STOPPED
        self._alarm: Optional[BaseAlarm] = None
        self._sink: Optional[NotificationSink] = None
        self._last_error = ""
        self._lock = threading.RLock()
        if self.poll_interval_ms < 0:
            raise ConfigError(
                f"poll_interval_ms must be >= 0, got {self.poll_interval_ms}"
            )
        self.logger.info(
            f"Initialized timer in {'alarm' if self.alarm_mode else 'poll'} mode "
            f"with store {self.event_store.store_id}"
        )

    @property
    def timer_id(self) -> str:
        return self._timer_id or self.conf.timer_id

    @cached_property
    def conf(self) -> ConfigEventTimer:
        return ConfigEventTimer(
            config_values=self.config_values, config_filepath=self.config_filepath
        )

    @cached_property
    def base_logger(self) -> Logger:
        return create_logger(self)

    @cached_property
    def logger(self) -> TimerLogAdapter:
        return TimerLogAdapter(self.base_logger, self.timer_id)

    @cached_property
    def event_store(self) -> BaseEventStore:
        try:
            store_cls = get_subclass(BaseEventStore, self.conf.event_store_cls)
        except ValueError as ex:
            raise ConfigError(str(ex)) from ex
        return store_cls(self)  # type: ignore # mypy issue #4717

    @property
    def poll_interval_ms(self) -> int:
        return int(self.conf.poll_interval_ms)

    @property
    def alarm_mode(self) -> bool:
        return self.poll_interval_ms == 0

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == TimerState.RUNNING

    @property
    def last_error(self) -> str:
        """Message of the latest error, empty if the latest store call succeeded."""
        return self._last_error

    def is_valid(self) -> bool:
        """
        Checks the timer can be used.

        Call it after instantiation and discard invalid timers; the reason is
        available in :attr:`last_error`.
        """
        if not self.event_store.is_valid():
            self._last_error = self.event_store.last_error
            return False
        return True

    def set_notification_sink(self, sink: NotificationSink) -> None:
        """
        Sets the callable notified about occurred events.

        :param NotificationSink sink: Called with a snapshot of each occurred
            event, as it was before being rolled forward. May call back into
            the timer.
        """
        if sink is None or not callable(sink):
            raise TypeError("The notification sink must be a callable")
        self._sink = sink

    def set_logger(self, sink: Optional[LogSink]) -> None:
        """
        Sets a callable receiving the timer log messages.

        :param Optional[LogSink] sink: One argument callable, None to stop
            forwarding messages.
        """
        set_log_sink(self.base_logger, sink)

    def now(self) -> datetime:
        return truncate_to_millis(self._clock())

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        """Records the outcome of a store call in ``last_error``."""
        try:
            yield
        except EventStoreError as ex:
            self._last_error = str(ex)
            self.logger.error(f"{operation} failed: {ex}")
            raise
        self._last_error = ""

    # Schedule management

    def add_event(self, event: Event) -> Optional[EventId]:
        """
        Schedules a new event.

        :param Event event: A valid event with an unassigned id. Receives the
            assigned id on success and is left untouched on failure.
        :return: The assigned id, or ``UNASSIGNED_ID`` if the store failed.
        :raises InvalidEventError: If the event is not valid.
        :raises EventIdAlreadyAssignedError: If the event already has an id.

        Dynamic events are cleared when the timer starts, so adding them
        before calling :meth:`start` has no effect.
        """
        event.validate()
        if event.id is not UNASSIGNED_ID:
            raise EventIdAlreadyAssignedError(event.id)
        with self._lock:
            try:
                with self._store_call("Adding event"):
                    event_id = self.event_store.insert(event)
            except EventStoreError:
                return UNASSIGNED_ID
            event.assign_id(event_id)
            self.logger.info(f"Event added. Id = {event_id}")
            if self.is_running and self.alarm_mode:
                self._arm_alarm()
            return event_id

    def remove_event(self, event_id: EventId) -> bool:
        """
        Cancels a scheduled event.

        :param EventId event_id: Id of the event.
        :return: True if the event existed and was removed.
        """
        with self._lock:
            try:
                with self._store_call(f"Removing event {event_id}"):
                    removed = self.event_store.remove(event_id)
            except EventStoreError:
                return False
            if removed:
                self.logger.info(f"Event removed. Id = {event_id}")
                if self.is_running and self.alarm_mode:
                    self._arm_alarm()
            else:
                self.logger.debug(f"Event {event_id} was not scheduled")
            return removed

    def get_event(self, event_id: EventId) -> Event:
        """
        Gets the current values of an event.

        :param EventId event_id: Id of the event.
        :return: The event, possibly rolled forward since it was added, or
            :meth:`Event.not_found` if there is no such event or the store
            failed (check :attr:`last_error` to tell both apart).
        """
        with self._lock:
            try:
                with self._store_call(f"Getting event {event_id}"):
                    event = self.event_store.get(event_id)
            except EventStoreError:
                return Event.not_found()
            return event or Event.not_found()

    def next_events(self, amount: int) -> list[Event]:
        """
        Lists the soonest scheduled events.

        Expired events are not cleaned up here, so the result is only
        accurate once the timer has been started.

        :param int amount: Maximum number of events, at least 1.
        :return: Up to ``amount`` events in ascending timestamp order, empty if
            the store failed.
        :raises ValueError: If ``amount`` is lower than 1.
        """
        if amount < 1:
            raise ValueError(f"amount must be at least 1, got {amount}")
        with self._lock:
            try:
                with self._store_call("Listing next events"):
                    return self.event_store.query_next(amount)
            except EventStoreError:
                return []

    def clear_dynamic(self) -> bool:
        """Removes every dynamic event. Returns False if the store failed."""
        with self._lock:
            try:
                with self._store_call("Clearing dynamic events"):
                    removed = self.event_store.clear_dynamic()
            except EventStoreError:
                return False
            self.logger.info(f"Dynamic events cleared successfully. Removed {removed}")
            if self.is_running and self.alarm_mode:
                self._arm_alarm()
            return True

    def clear_all(self) -> bool:
        """Removes every event. Returns False if the store failed."""
        with self._lock:
            try:
                with self._store_call("Clearing all events"):
                    removed = self.event_store.clear_all()
            except EventStoreError:
                return False
            self.logger.info(f"All events cleared successfully. Removed {removed}")
            if self.is_running and self.alarm_mode:
                self._cancel_alarm()
            return True

    # Lifecycle

    def start(self, policy: CleanupPolicy = CleanupPolicy.CLEAR) -> None:
        """
        Starts notifying events.

        Before the wake loop begins, dynamic events are removed and every
        event that expired while the timer was stopped is rolled forward or
        removed; with ``CleanupPolicy.NOTIFY`` the sink is told about each of
        them once.

        :param CleanupPolicy policy: What to do with the expired events.
        :raises NotificationSinkNotSetError: If no sink was set.
        :raises InvalidTimerError: If the Event Store is not valid.
        :raises TimerStateError: If the timer is already running.
        """
        with self._lock:
            if self.is_running:
                raise TimerStateError(self.timer_id, "Timer is already running")
            if self._sink is None:
                raise NotificationSinkNotSetError(
                    self.timer_id, "Set a notification sink before starting"
                )
            if not self.is_valid():
                raise InvalidTimerError(self.timer_id, self._last_error)

            try:
                with self._store_call("Clearing dynamic events"):
                    removed = self.event_store.clear_dynamic()
                self.logger.info(
                    f"Dynamic events cleared successfully. Removed {removed}"
                )
            except EventStoreError:
                pass

            self._state = TimerState.RUNNING
            failed = True
            try:
                expired, failed = self._process_due(self.now())
                if policy == CleanupPolicy.NOTIFY:
                    self._notify(expired)
                elif expired:
                    self.logger.info(f"Cleared {len(expired)} expired events silently")
            finally:
                # a RUNNING timer always has a wake loop
                if self.is_running:
                    self._begin_wake_loop(failed)
                    self.logger.info("Timer started.")

    def stop(self) -> None:
        """
        Stops notifying events.

        The pending alarm is cancelled before returning. Stored events are
        left as they are.

        :raises TimerStateError: If the timer is not running.
        """
        with self._lock:
            if not self.is_running:
                raise TimerStateError(self.timer_id, "Timer is not running")
            self._state = TimerState.STOPPED
            self._cancel_alarm()
            self.logger.info("Timer stopped.")

    def tick(self, current_time: Optional[datetime] = None) -> list[Event]:
        """
        Processes the events that are due, as done on every wake up.

        Called by the alarms; can also be called directly by hosts driving the
        timer themselves. Does nothing while the timer is stopped.

        :param Optional[datetime] current_time: Reference time, defaults to now.
        :return: The notified events, as they were before being rolled forward.
        """
        with self._lock:
            if not self.is_running:
                return []
            now = truncate_to_millis(current_time) if current_time else self.now()
            occurred: list[Event] = []
            failed = True
            try:
                occurred, failed = self._process_due(now)
                self._notify(occurred)
            finally:
                if self.is_running and self.alarm_mode:
                    self._arm_alarm(retry=failed)
            return occurred

    # Internals

    def _process_due(self, now: datetime) -> tuple[list[Event], bool]:
        """
        Rolls forward the due events and persists the outcome.

        :return: The events successfully persisted (pre-advance snapshots) and
            whether any store call failed. Events whose update failed are left
            due, to be retried on the next wake up.
        """
        try:
            with self._store_call("Checking occurred events"):
                due = self.event_store.query_due(format_timestamp(now))
        except EventStoreError:
            return [], True

        processed: list[Event] = []
        failure = ""
        for event in due:
            try:
                with self._store_call(f"Persisting event {event.id}"):
                    if (event_id := event.id) is None:
                        raise EventStoreError(
                            self.event_store.store_id,
                            f"Due event {event.name!r} was returned without an id",
                        )
                    outcome = advance(event, now)
                    if isinstance(outcome, Removed):
                        self.event_store.remove(event_id)
                        self.logger.debug(f"Event {event_id} has no repeats left, removed")
                    else:
                        self.event_store.update(event_id, outcome.event)
                        self.logger.debug(
                            f"Event {event_id} rolled forward to {outcome.event.timestamp}, "
                            f"{outcome.event.repeats} repeats left"
                        )
            except EventStoreError as ex:
                failure = failure or str(ex)
                continue
            processed.append(event)
        if failure:
            # later successful calls must not hide the failure
            self._last_error = failure
        return processed, bool(failure)

    def _notify(self, events: list[Event]) -> None:
        """
        Hands each event to the sink.

        Every event here is already persisted, so a sink failure is logged
        and the remaining events are still notified.
        """
        if (sink := self._sink) is None:
            raise NotificationSinkNotSetError(self.timer_id, "No notification sink set")
        for event in events:
            if not self.is_running:
                self.logger.debug("Timer stopped by the sink, skipping notifications")
                return
            try:
                sink(event.snapshot())
            except Exception:
                self.logger.exception(f"Notification sink failed for event {event.id}")

    def _begin_wake_loop(self, retry: bool = False) -> None:
        if self.alarm_mode:
            self._arm_alarm(retry=retry)
        else:
            self._cancel_alarm()
            self._alarm = self.alarm_clock.periodic(self.poll_interval_ms, self._on_alarm)

    def _on_alarm(self) -> None:
        self.tick()

    def _cancel_alarm(self) -> None:
        if self._alarm is not None:
            self._alarm.cancel()
            self._alarm = None

    def _arm_alarm(self, retry: bool = False) -> None:
        """
        Sets the single alarm at the nearest scheduled event.

        :param bool retry: The last tick failed. The events it left due are
            retried after ``retry_interval_ms``, or earlier if a pending event
            is due before that.
        """
        self._cancel_alarm()
        retry_ms = int(self.conf.retry_interval_ms)
        tick_error = self._last_error
        now = self.now()
        # rows left due by a failed tick would fire the alarm immediately
        after = format_timestamp(now) if retry else None
        try:
            with self._store_call("Looking up the nearest event"):
                nearest = self.event_store.query_next(1, after=after)
        except EventStoreError:
            self._alarm = self.alarm_clock.single_shot(retry_ms, self._on_alarm)
            return
        if retry:
            self._last_error = tick_error
        if not nearest:
            if retry:
                self._alarm = self.alarm_clock.single_shot(retry_ms, self._on_alarm)
            else:
                self.logger.debug("No scheduled events, waiting for new ones")
            return
        delay = max(millis_between(now, parse_timestamp(nearest[0].timestamp)), 0)
        if retry:
            delay = min(delay, retry_ms)
        self.logger.debug(f"Next wake up in {delay}ms for event {nearest[0].id}")
        self._alarm = self.alarm_clock.single_shot(delay, self._on_alarm)
