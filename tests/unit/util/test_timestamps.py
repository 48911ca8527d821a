from datetime import datetime, timedelta

import pytest

from eventtimer.util.timestamps import (
    add_millis,
    format_timestamp,
    is_valid_timestamp,
    millis_between,
    parse_timestamp,
    truncate_to_millis,
)


def test_format_pads_every_field() -> None:
    assert format_timestamp(datetime(2016, 5, 1, 2, 3, 4, 5_000)) == "2016-05-01 02:03:04:005"


def test_format_truncates_micros() -> None:
    assert format_timestamp(datetime(2016, 5, 1, 2, 3, 4, 999_999)) == "2016-05-01 02:03:04:999"


def test_parse() -> None:
    assert parse_timestamp("2016-05-01 12:00:00:250") == datetime(2016, 5, 1, 12, 0, 0, 250_000)


@pytest.mark.parametrize(
    "text",
    ["", "2016-05-01 12:00:00", "2016-05-01 12:00:00.250", "2016-5-1 12:00:00:250", "2016-02-30 12:00:00:000"],
)
def test_parse_invalid(text: str) -> None:
    assert not is_valid_timestamp(text)
    with pytest.raises(ValueError):
        parse_timestamp(text)


def test_lexicographic_order_is_chronological() -> None:
    start = datetime(2016, 12, 31, 23, 59, 59, 998_000)
    moments = [start + timedelta(milliseconds=ms) for ms in (0, 1, 2, 1000, 86_400_000)]
    texts = [format_timestamp(m) for m in moments]
    assert texts == sorted(texts)


def test_add_millis_crosses_day() -> None:
    assert add_millis("2016-05-01 23:59:59:900", 200) == "2016-05-02 00:00:00:100"


def test_millis_between() -> None:
    start = datetime(2016, 5, 1)
    assert millis_between(start, start + timedelta(days=2, milliseconds=5)) == 172_800_005
    assert millis_between(start + timedelta(milliseconds=5), start) == -5


def test_truncate_to_millis() -> None:
    assert truncate_to_millis(datetime(2016, 5, 1, 0, 0, 0, 123_456)).microsecond == 123_000


def test_format_pads_years_before_1000() -> None:
    assert format_timestamp(datetime(999, 1, 2, 3, 4, 5, 6000)) == "0999-01-02 03:04:05:006"
    assert parse_timestamp("0999-01-02 03:04:05:006") == datetime(999, 1, 2, 3, 4, 5, 6000)
