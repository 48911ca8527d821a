"""
Virtual time alarms driven by the caller.

Nothing happens on its own: the owner moves the clock with :meth:`advance`
or :meth:`advance_to` and every alarm whose deadline is reached fires, in
deadline order, on the caller's thread. Useful for tests and for hosts
that already run their own loop.
"""

import heapq
import itertools
from datetime import datetime, timedelta
from typing import Optional

from eventtimer.alarm.base_alarm import AlarmCallback, BaseAlarm, BaseAlarmClock


class ManualAlarm(BaseAlarm):
    def __init__(
        self,
        deadline: datetime,
        callback: AlarmCallback,
        interval_ms: Optional[int] = None,
    ) -> None:
        self.deadline = deadline
        self.callback = callback
        self.interval_ms = interval_ms
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def active(self) -> bool:
        return not self._cancelled


class ManualAlarmClock(BaseAlarmClock):
    """
    Alarm clock whose time only moves when told to.

    :param datetime start: Initial virtual time, defaults to the current time.
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or datetime.now()
        self._queue: list[tuple[datetime, int, ManualAlarm]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self._now

    def _push(self, alarm: ManualAlarm) -> ManualAlarm:
        heapq.heappush(self._queue, (alarm.deadline, next(self._sequence), alarm))
        return alarm

    def single_shot(self, delay_ms: int, callback: AlarmCallback) -> ManualAlarm:
        deadline = self._now + timedelta(milliseconds=max(delay_ms, 0))
        return self._push(ManualAlarm(deadline, callback))

    def periodic(self, interval_ms: int, callback: AlarmCallback) -> ManualAlarm:
        if interval_ms <= 0:
            raise ValueError(f"Periodic alarms need a positive interval, got {interval_ms}")
        deadline = self._now + timedelta(milliseconds=interval_ms)
        return self._push(ManualAlarm(deadline, callback, interval_ms))

    @property
    def pending(self) -> list[ManualAlarm]:
        """Active alarms sorted by deadline."""
        return [alarm for _, _, alarm in sorted(self._queue) if alarm.active]

    def next_deadline(self) -> Optional[datetime]:
        if pending := self.pending:
            return pending[0].deadline
        return None

    def advance_to(self, moment: datetime) -> int:
        """
        Moves the clock to ``moment`` firing every alarm due on the way.

        The clock is set to each alarm's deadline before its callback runs,
        so callbacks observe the time they were scheduled for.

        :param datetime moment: Target time, must not be in the past.
        :return: Number of callbacks run.
        """
        if moment < self._now:
            raise ValueError(f"Cannot move the clock backwards to {moment}")
        fired = 0
        while self._queue and self._queue[0][0] <= moment:
            deadline, _, alarm = heapq.heappop(self._queue)
            if not alarm.active:
                continue
            self._now = max(self._now, deadline)
            if alarm.interval_ms is None:
                alarm.cancel()
            else:
                alarm.deadline = deadline + timedelta(milliseconds=alarm.interval_ms)
                self._push(alarm)
            alarm.callback()
            fired += 1
        self._now = moment
        return fired

    def advance(self, millis: int) -> int:
        """Moves the clock ``millis`` milliseconds forward, see :meth:`advance_to`."""
        return self.advance_to(self._now + timedelta(milliseconds=millis))
