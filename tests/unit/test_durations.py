"""Tests for duration parsing and formatting."""

from datetime import timedelta

import pytest

from drillmeasure.durations import format_duration, parse_duration


@pytest.mark.parametrize(
    ("literal", "expected"),
    [
        ("5m", timedelta(minutes=5)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("30s", timedelta(seconds=30)),
        ("500ms", timedelta(milliseconds=500)),
        ("1.5h", timedelta(minutes=90)),
        ("2m0.5s", timedelta(minutes=2, milliseconds=500)),
        ("250us", timedelta(microseconds=250)),
        ("0", timedelta(0)),
        ("+10s", timedelta(seconds=10)),
        ("-10s", timedelta(seconds=-10)),
    ],
)
def test_parse_duration_valid(literal: str, expected: timedelta) -> None:
    """parse_duration accepts integer and decimal values with unit suffixes."""
    assert parse_duration(literal) == expected


@pytest.mark.parametrize(
    "literal", ["", "  ", "5", "m", "5x", "1h-30m", "1.2.3s", "abc"]
)
def test_parse_duration_invalid(literal: str) -> None:
    """parse_duration rejects malformed literals."""
    with pytest.raises(ValueError, match="invalid duration"):
        parse_duration(literal)


@pytest.mark.parametrize(
    ("duration", "expected"),
    [
        (timedelta(milliseconds=250), "250ms"),
        (timedelta(seconds=12.345), "12.35s"),
        (timedelta(minutes=2, seconds=5), "2m5s"),
        (timedelta(hours=1, minutes=2, seconds=3), "1h2m3s"),
        (timedelta(hours=2, seconds=1.5), "2h0m1.5s"),
    ],
)
def test_format_duration(duration: timedelta, expected: str) -> None:
    """format_duration picks a unit matching the magnitude."""
    assert format_duration(duration) == expected


def test_format_duration_precision() -> None:
    """format_duration honours the requested number of decimals."""
    assert format_duration(timedelta(seconds=7.26), precision=1) == "7.3s"
