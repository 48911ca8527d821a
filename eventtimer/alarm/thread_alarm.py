"""
Real time alarms backed by daemon threads.
"""

import logging
import threading
from datetime import datetime

from eventtimer.alarm.base_alarm import AlarmCallback, BaseAlarm, BaseAlarmClock

logger = logging.getLogger(__name__)


class ThreadAlarm(BaseAlarm):
    """
    Alarm running its callback on a dedicated daemon thread.

    The thread waits on an internal event, so cancelling wakes it up at once
    instead of letting it sleep until the next deadline.
    """

    def __init__(
        self, delay_ms: int, callback: AlarmCallback, repeat: bool = False
    ) -> None:
        self.delay_sec = max(delay_ms, 0) / 1000
        self.callback = callback
        self.repeat = repeat
        self._cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"eventtimer-alarm-{'periodic' if repeat else 'once'}",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._cancelled.wait(self.delay_sec):
            try:
                self.callback()
            except Exception:
                logger.exception("Alarm callback raised an exception")
            if not self.repeat:
                self._cancelled.set()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set()


class ThreadAlarmClock(BaseAlarmClock):
    """Alarm clock using the system clock and background threads."""

    def now(self) -> datetime:
        return datetime.now()

    def single_shot(self, delay_ms: int, callback: AlarmCallback) -> ThreadAlarm:
        return ThreadAlarm(delay_ms, callback)

    def periodic(self, interval_ms: int, callback: AlarmCallback) -> ThreadAlarm:
        if interval_ms <= 0:
            raise ValueError(f"Periodic alarms need a positive interval, got {interval_ms}")
        return ThreadAlarm(interval_ms, callback, repeat=True)
