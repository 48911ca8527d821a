from eventtimer.alarm.base_alarm import AlarmCallback, BaseAlarm, BaseAlarmClock
from eventtimer.alarm.manual_alarm import ManualAlarm, ManualAlarmClock
from eventtimer.alarm.thread_alarm import ThreadAlarm, ThreadAlarmClock

__all__ = [
    "AlarmCallback",
    "BaseAlarm",
    "BaseAlarmClock",
    "ManualAlarm",
    "ManualAlarmClock",
    "ThreadAlarm",
    "ThreadAlarmClock",
]
