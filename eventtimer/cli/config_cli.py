import argparse
import re
from functools import lru_cache

from cistell import ConfigBase

from eventtimer.cli.namespace import EventTimerCLINamespace
from eventtimer.conf.config_base import ConfigEventTimerBase

_CVAR_PATTERN = re.compile(r":cvar\s+(\w+\[?.*?\]?)\s+(\w+):\s*(.*?)(?=\n\s*:cvar|$)", re.DOTALL)


@lru_cache(maxsize=None)
def extract_descriptions_from_docstring(config_cls: type[ConfigBase]) -> dict[str, str]:
    """
    Extract field descriptions from the docstring of a configuration class.

    Fields are documented with ``:cvar <type> <name>:`` entries followed by an
    indented description. Descriptions of parent classes are included, so
    the result covers every field of the class.

    :param type[ConfigBase] config_cls: The configuration class to extract descriptions from.
    :return: A dictionary mapping field names to their descriptions.
    """
    if config_cls in (ConfigBase, ConfigEventTimerBase):
        return {}
    field_docs: dict[str, str] = {}
    for parent in config_cls.__bases__:
        if issubclass(parent, ConfigBase):
            field_docs.update(extract_descriptions_from_docstring(parent))

    for match in _CVAR_PATTERN.finditer(config_cls.__doc__ or ""):
        _, field_name, description = match.groups()
        field_docs[field_name] = " ".join(
            line.strip() for line in description.splitlines()
        ).strip()
    return field_docs


def add_config_subparser(subparsers: argparse._SubParsersAction) -> None:
    """
    Add the 'show_config' command to the main argparse parser.

    :param argparse._SubParsersAction subparsers: The subparsers object from the main parser.
    """
    show_config_parser = subparsers.add_parser(
        "show_config", help="Show timer and event store configuration"
    )
    show_config_parser.set_defaults(func=show_config_command)


def print_config(config: ConfigBase) -> None:
    print(f"Config {config.__class__.__name__}:")
    for field, description in extract_descriptions_from_docstring(
        config.__class__
    ).items():
        print("-" * 50)
        print(f"{field}: ")
        print(f"  Value: {getattr(config, field)}")
        print(f"  Description: {description}")
    print("-" * 50)


def show_config_command(args: EventTimerCLINamespace) -> None:
    """
    Execute the 'show_config' command.

    Prints every field of the timer configuration and of its Event Store
    configuration, with the current value and the documented description.

    :param EventTimerCLINamespace args: The parsed CLI arguments, including the timer.
    """
    if (timer := args.timer_instance) is None:
        raise TypeError("timer_instance must be an instance of EventTimer")
    print("Showing configuration for EventTimer instance:")
    print(f"  - id: {timer.timer_id}")
    print(f"  - config file: {args.config or '-'}")
    print_config(timer.conf)
    print_config(timer.event_store.conf)
