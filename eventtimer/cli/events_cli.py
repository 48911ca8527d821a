"""
Commands editing and running the schedule of an EventTimer.

Every command works on the Event Store selected by the global options, so a
running timer and these commands can share the same SQLite file or Redis
server.
"""

import argparse
import threading
from datetime import datetime, timedelta

from eventtimer.cli.namespace import EventTimerCLINamespace
from eventtimer.event import INFINITE_REPEAT, UNASSIGNED_ID, Event, EventType
from eventtimer.timer import CleanupPolicy, EventTimer
from eventtimer.util.timestamps import TIME_FORMAT, format_timestamp


def _timer(args: EventTimerCLINamespace) -> EventTimer:
    if not isinstance(args.timer_instance, EventTimer):
        raise TypeError("timer_instance must be an instance of EventTimer")
    return args.timer_instance


def add_events_subparsers(subparsers: argparse._SubParsersAction) -> None:
    """
    Add the schedule commands (add, remove, get, next, clear, run).

    :param argparse._SubParsersAction subparsers: The subparsers object from the main parser.
    """
    add_parser = subparsers.add_parser(
        "add",
        help="Schedule a new event",
        description="Schedule a new event. DYNAMIC events are discarded the "
        "next time a timer starts on the same store, use --static to keep them.",
    )
    add_parser.add_argument("name", help="Name of the event")
    when = add_parser.add_mutually_exclusive_group(required=True)
    when.add_argument("--at", help=f"Timestamp of the first occurrence ({TIME_FORMAT})")
    when.add_argument(
        "--in-ms", type=int, help="First occurrence this many milliseconds from now"
    )
    add_parser.add_argument(
        "--static", action="store_true", help="Keep the event between timer runs"
    )
    add_parser.add_argument(
        "--interval", type=int, default=0, help="Milliseconds between repeats"
    )
    repeats = add_parser.add_mutually_exclusive_group()
    repeats.add_argument("--repeats", type=int, default=0, help="Number of repeats")
    repeats.add_argument(
        "--forever", action="store_true", help="Repeat until removed"
    )
    add_parser.set_defaults(func=add_command)

    remove_parser = subparsers.add_parser("remove", help="Remove a scheduled event")
    remove_parser.add_argument("event_id", type=int, help="Id of the event")
    remove_parser.set_defaults(func=remove_command)

    get_parser = subparsers.add_parser("get", help="Show a scheduled event as json")
    get_parser.add_argument("event_id", type=int, help="Id of the event")
    get_parser.set_defaults(func=get_command)

    next_parser = subparsers.add_parser("next", help="List the soonest events")
    next_parser.add_argument(
        "-n", "--amount", type=int, default=10, help="Maximum number of events"
    )
    next_parser.set_defaults(func=next_command)

    clear_parser = subparsers.add_parser("clear", help="Remove scheduled events")
    clear_parser.add_argument(
        "--dynamic", action="store_true", help="Only remove the DYNAMIC events"
    )
    clear_parser.set_defaults(func=clear_command)

    run_parser = subparsers.add_parser(
        "run", help="Run the timer, printing every occurred event"
    )
    run_parser.add_argument(
        "--policy",
        choices=[p.value for p in CleanupPolicy],
        default=CleanupPolicy.CLEAR.value,
        help="What to do with the events that expired while no timer was running",
    )
    run_parser.add_argument(
        "--poll-ms", type=int, help="Poll interval in milliseconds, 0 for alarm mode"
    )
    run_parser.add_argument(
        "--for-ms", type=int, help="Stop after this many milliseconds"
    )
    run_parser.set_defaults(func=run_command)


def add_command(args: argparse.Namespace) -> None:
    timer = _timer(args)
    if args.at:
        timestamp = args.at
    else:
        timestamp = format_timestamp(datetime.now() + timedelta(milliseconds=args.in_ms))
    event = Event(
        name=args.name,
        timestamp=timestamp,
        type=EventType.STATIC if args.static else EventType.DYNAMIC,
        interval=args.interval,
        repeats=INFINITE_REPEAT if args.forever else args.repeats,
    )
    if (event_id := timer.add_event(event)) is UNASSIGNED_ID:
        raise ValueError(f"Could not add the event: {timer.last_error}")
    print(event_id)


def remove_command(args: argparse.Namespace) -> None:
    timer = _timer(args)
    if not timer.remove_event(args.event_id):
        raise ValueError(
            timer.last_error or f"Event {args.event_id} is not scheduled"
        )
    print(f"Removed event {args.event_id}")


def get_command(args: argparse.Namespace) -> None:
    timer = _timer(args)
    event = timer.get_event(args.event_id)
    if not event.is_found:
        raise ValueError(timer.last_error or f"Event {args.event_id} is not scheduled")
    print(event.to_json())


def next_command(args: argparse.Namespace) -> None:
    timer = _timer(args)
    events = timer.next_events(args.amount)
    if timer.last_error:
        raise ValueError(timer.last_error)
    for event in events:
        print(event)


def clear_command(args: argparse.Namespace) -> None:
    timer = _timer(args)
    cleared = timer.clear_dynamic() if args.dynamic else timer.clear_all()
    if not cleared:
        raise ValueError(timer.last_error)
    print("Cleared dynamic events" if args.dynamic else "Cleared all events")


def run_command(args: argparse.Namespace) -> None:
    """
    Execute the 'run' command.

    Starts the timer and prints every notified event until interrupted
    (or until ``--for-ms`` elapses), then stops it.

    :param argparse.Namespace args: The parsed CLI arguments, including the timer.
    """
    timer = _timer(args)
    timer.set_notification_sink(lambda event: print(event, flush=True))
    finished = threading.Event()
    timer.start(CleanupPolicy(args.policy))
    try:
        finished.wait(args.for_ms / 1000 if args.for_ms is not None else None)
    except KeyboardInterrupt:
        print("Interrupted")
    finally:
        timer.stop()
