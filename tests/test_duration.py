from datetime import timedelta

import pytest

from app.utils.duration import format_duration, parse_duration


@pytest.mark.parametrize(
    "text, expected",
    [
        ("5m", timedelta(minutes=5)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5h", timedelta(hours=1, minutes=30)),
        ("300ms", timedelta(milliseconds=300)),
        ("2us", timedelta(microseconds=2)),
        ("2µs", timedelta(microseconds=2)),
        ("1500ns", timedelta(microseconds=1)),
        ("+10s", timedelta(seconds=10)),
        ("-2s", timedelta(seconds=-2)),
        ("0", timedelta(0)),
        (".5s", timedelta(milliseconds=500)),
        ("1h1m1s1ms", timedelta(hours=1, minutes=1, seconds=1, milliseconds=1)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "10", "s", ".s", "5d", "-", "1m ", " 1m", "1m30", "٥m", "99999999999999h", "2562048h", "9223372036854775808ns"])
def test_parse_duration_rejects(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_format_duration_is_readable_by_parser():
    period = timedelta(hours=1, seconds=3, microseconds=7)
    assert format_duration(period) == "3603000007us"
    assert parse_duration(format_duration(period)) == period


def test_parse_duration_accepts_largest_nanosecond_count():
    assert parse_duration("2562047h") == timedelta(hours=2562047)
    assert parse_duration("9223372036854775807ns") == timedelta(microseconds=9223372036854775)
