"""
Global EventTimer exception classes.
"""
import json
from typing import Any, Optional

from .util.subclasses import get_all_subclasses


class EventTimerError(Exception):
    """Base class for all EventTimer related errors."""

    def _to_json_dict(self) -> dict[str, Any]:
        """Returns a json serializable dictionary"""
        return self.__dict__

    @classmethod
    def _from_json_dict(cls, json_dict: dict[str, Any]) -> "EventTimerError":
        """Returns a new error from the serialized json compatible dictionary"""
        return cls(**json_dict)

    def to_json(self) -> str:
        """Returns a string with the serialized error"""
        return json.dumps(self._to_json_dict())

    @classmethod
    def from_json(cls, error_name: str, serialized: str) -> "EventTimerError":
        """Returns the child class from a serialized error"""
        for subcls in get_all_subclasses(cls):
            if subcls.__name__ == error_name:
                return subcls._from_json_dict(json_dict=json.loads(serialized))
        raise ValueError(f"Unknown error type: {error_name}")


class InvalidEventError(EventTimerError):
    """Error raised when an event breaks the validity rules."""

    def __init__(self, event_name: str, message: Optional[str] = None) -> None:
        self.event_name = event_name
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"InvalidEventError({self.event_name!r}): {self.message}"
        return f"InvalidEventError({self.event_name!r})"


class EventIdAlreadyAssignedError(EventTimerError):
    """Error raised when trying to assign an id to an event that already has one."""

    def __init__(self, event_id: int, new_id: Optional[int] = None) -> None:
        self.event_id = event_id
        self.new_id = new_id

    def __str__(self) -> str:
        return f"EventIdAlreadyAssignedError({self.event_id}): cannot reassign to {self.new_id}"


class EventStoreError(EventTimerError):
    """Error raised when an Event Store operation fails."""

    def __init__(self, store_id: str, message: Optional[str] = None) -> None:
        self.store_id = store_id
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"{self.__class__.__name__}({self.store_id}): {self.message}"
        return f"{self.__class__.__name__}({self.store_id})"


class EventStoreConfigError(EventStoreError):
    """Error raised when the Event Store cannot be opened or is misconfigured."""


class TimerError(EventTimerError):
    """Base class for all the errors related with the timer lifecycle."""

    def __init__(self, timer_id: str, message: Optional[str] = None) -> None:
        self.timer_id = timer_id
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"{self.__class__.__name__}({self.timer_id}): {self.message}"
        return f"{self.__class__.__name__}({self.timer_id})"


class TimerStateError(TimerError):
    """Raised when start/stop are called in the wrong state."""


class NotificationSinkNotSetError(TimerError):
    """Raised when starting a timer without a notification sink."""


class InvalidTimerError(TimerError):
    """Raised when using a timer whose Event Store could not be opened."""


class ConfigError(EventTimerError, ValueError):
    """Base class for all the config related errors"""
