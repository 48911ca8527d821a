import argparse
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from eventtimer.timer import EventTimer


@dataclass
class EventTimerCLINamespace(argparse.Namespace):
    """
    A dataclass for holding command line arguments in the EventTimer CLI.

    :cvar Optional[str] config:
        Path to a configuration file (yaml, json or toml). Default is None.
    :cvar Optional[str] db:
        Path to the SQLite database, selects the SQLite Event Store. Default is None.
    :cvar Optional[str] table:
        Name of the events table. Default is None.
    :cvar Optional[bool] verbose:
        Flag to increase output verbosity. Default is None.
    :cvar Optional[EventTimer] timer_instance:
        The EventTimer built from the options, set after parsing arguments.
    """

    config: str | None = None
    db: str | None = None
    table: str | None = None
    verbose: bool | None = None
    timer_instance: Optional["EventTimer"] = None
