"""
Alarm abstraction used by the timer to wake up.

An alarm clock hands out two kinds of cancellable alarms:

- single shot: calls the callback once after a delay;
- periodic: calls the callback every interval until cancelled.

The timer holds at most one active alarm at a time.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

AlarmCallback = Callable[[], None]


class BaseAlarm(ABC):
    """Handle of a scheduled alarm."""

    @abstractmethod
    def cancel(self) -> None:
        """
        Cancels the alarm.

        After this call returns the callback will not be started again.
        Cancelling twice is a no-op.
        """

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the alarm may still fire."""


class BaseAlarmClock(ABC):
    """Factory of alarms and source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """The current local time."""

    @abstractmethod
    def single_shot(self, delay_ms: int, callback: AlarmCallback) -> BaseAlarm:
        """
        Schedules ``callback`` once, ``delay_ms`` milliseconds from now.

        :param int delay_ms: Delay in milliseconds, negative values fire immediately.
        :param AlarmCallback callback: Function to call.
        :return: The alarm handle.
        """

    @abstractmethod
    def periodic(self, interval_ms: int, callback: AlarmCallback) -> BaseAlarm:
        """
        Schedules ``callback`` every ``interval_ms`` milliseconds.

        :param int interval_ms: Period in milliseconds, must be positive.
        :param AlarmCallback callback: Function to call.
        :return: The alarm handle.
        """
