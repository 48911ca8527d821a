import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Any, Optional

from eventtimer.cli.config_cli import add_config_subparser
from eventtimer.cli.events_cli import add_events_subparsers
from eventtimer.cli.namespace import EventTimerCLINamespace
from eventtimer.exceptions import EventTimerError
from eventtimer.timer import EventTimer


def build_config_values(args: EventTimerCLINamespace) -> dict[str, Any]:
    """
    Translate the command line options into timer configuration values.

    Options not given on the command line are left out, so the config file
    and the environment still apply to them.
    """
    config_values: dict[str, Any] = {}
    if args.db:
        config_values["event_store_cls"] = "SQLiteEventStore"
        config_values["sqlite_db_path"] = args.db
    if args.table:
        config_values["table_name"] = args.table
    if args.verbose:
        config_values["logging_level"] = "debug"
    if (poll_ms := getattr(args, "poll_ms", None)) is not None:
        config_values["poll_interval_ms"] = poll_ms
    return config_values


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Execute the EventTimer Command Line Interface.

    Builds a timer from the global options (config file, database, table),
    checks its Event Store can be used and runs the chosen subcommand on it.
    Errors are logged and end the process with exit code 1.
    """
    parser = argparse.ArgumentParser(description="EventTimer Command Line Interface")
    parser.add_argument(
        "--config", help="Configuration file (yaml, json or toml)"
    )
    parser.add_argument(
        "--db", help="SQLite database file, selects the SQLite Event Store"
    )
    parser.add_argument("--table", help="Name of the events table")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Increase output verbosity"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    add_events_subparsers(subparsers)
    add_config_subparser(subparsers)

    args = EventTimerCLINamespace()
    parser.parse_args(argv, namespace=args)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    try:
        timer = EventTimer(
            config_values=build_config_values(args), config_filepath=args.config
        )
        if args.command != "show_config" and not timer.is_valid():
            raise ValueError(f"Cannot open the event store: {timer.last_error}")
        args.timer_instance = timer
        args.func(args)
    except (EventTimerError, ValueError) as e:
        logging.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
