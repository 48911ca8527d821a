from collections.abc import Callable
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from datetime import datetime

    from eventtimer.event import Event

EventId: TypeAlias = int
NotificationSink: TypeAlias = Callable[["Event"], None]
LogSink: TypeAlias = Callable[[str], None]
Clock: TypeAlias = Callable[[], "datetime"]
