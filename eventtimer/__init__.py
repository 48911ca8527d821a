from eventtimer.builder import EventTimerBuilder
from eventtimer.event import INFINITE_REPEAT, UNASSIGNED_ID, Event, EventType
from eventtimer.timer import CleanupPolicy, EventTimer, TimerState

__all__ = [
    "CleanupPolicy",
    "Event",
    "EventTimer",
    "EventTimerBuilder",
    "EventType",
    "INFINITE_REPEAT",
    "TimerState",
    "UNASSIGNED_ID",
]
