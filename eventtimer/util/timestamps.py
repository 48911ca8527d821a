"""
Helpers for the canonical event timestamp format.

Events exchange their due time as text in the form
``yyyy-MM-dd hh:mm:ss:zzz`` (for example ``2016-05-01 12:00:00:250``).
Every field is zero padded, so comparing two canonical timestamps as
strings gives the same result as comparing the instants they represent.
The stores rely on that to run range queries directly on the text column.
"""

import re
from datetime import datetime, timedelta

TIME_FORMAT = "yyyy-MM-dd hh:mm:ss:zzz"
_STRPTIME_FORMAT = "%Y-%m-%d %H:%M:%S:%f"
_CANONICAL_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}:\d{3}$")


def truncate_to_millis(moment: datetime) -> datetime:
    """Drops the sub-millisecond part of a datetime."""
    return moment.replace(microsecond=moment.microsecond - moment.microsecond % 1000)


def format_timestamp(moment: datetime) -> str:
    """
    Formats a datetime in the canonical timestamp format.

    :param datetime moment: The instant to format. Sub-millisecond
        precision is truncated, never rounded.
    :return: The canonical text representation.
    """
    # %Y is not zero padded below year 1000 on every platform
    return (
        f"{moment.year:04d}-{moment:%m-%d %H:%M:%S}:{moment.microsecond // 1000:03d}"
    )


def parse_timestamp(timestamp: str) -> datetime:
    """
    Parses a canonical timestamp.

    :param str timestamp: Text in the canonical format.
    :return: The naive datetime it represents.
    :raises ValueError: If the text is not a valid canonical timestamp.
    """
    if not isinstance(timestamp, str) or not _CANONICAL_RE.match(timestamp):
        raise ValueError(
            f"Timestamp {timestamp!r} does not match the format {TIME_FORMAT}"
        )
    return datetime.strptime(timestamp, _STRPTIME_FORMAT)


def is_valid_timestamp(timestamp: str) -> bool:
    try:
        parse_timestamp(timestamp)
    except ValueError:
        return False
    return True


def add_millis(timestamp: str, millis: int) -> str:
    """Shifts a canonical timestamp by a number of milliseconds."""
    return format_timestamp(parse_timestamp(timestamp) + timedelta(milliseconds=millis))


def millis_between(start: datetime, end: datetime) -> int:
    """Whole milliseconds from ``start`` to ``end`` (negative if end is earlier)."""
    delta = end - start
    return (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)
