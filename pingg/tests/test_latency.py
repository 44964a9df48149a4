"""Tests for latency extraction from ping output lines."""

import pytest

from pingg.automation.latency import LatencyParseError, parse_latency, try_parse_latency
from pingg.tests.sample_output import (
    LINUX_OUTPUT,
    LINUX_SAMPLES,
    MACOS_OUTPUT,
    MACOS_SAMPLES,
    WINDOWS_OUTPUT,
    WINDOWS_SAMPLES,
)


def test_fractional_value():
    assert parse_latency("time=23.4ms") == 23.4


def test_space_before_unit():
    assert parse_latency("time=1.23 ms") == 1.23


def test_integer_value_with_two_digits():
    """The fractional part is optional as long as two digits are present."""
    assert parse_latency("time=12ms") == 12.0


def test_single_digit_value_is_not_matched():
    """The pattern needs a digit on each side of the optional dot."""
    with pytest.raises(LatencyParseError):
        parse_latency("time=5ms")


def test_windows_sub_millisecond_reply_is_not_matched():
    assert try_parse_latency("Reply from 127.0.0.1: bytes=32 time<1ms TTL=128") is None


def test_no_unit_marker():
    with pytest.raises(LatencyParseError) as exc_info:
        parse_latency("PING 1.1.1.1 (1.1.1.1) 56(84) bytes of data.")
    assert "No match found" in str(exc_info.value)


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_latency("")


def test_first_match_wins():
    assert parse_latency("10.5 ms then 20.5 ms") == 10.5


@pytest.mark.parametrize(
    "lines, expected",
    [
        (LINUX_OUTPUT, LINUX_SAMPLES),
        (MACOS_OUTPUT, MACOS_SAMPLES),
        (WINDOWS_OUTPUT, WINDOWS_SAMPLES),
    ],
    ids=["linux", "macos", "windows"],
)
def test_platform_output(lines, expected):
    """Only reply lines yield values; headers and timeouts are filtered out."""
    parsed = [v for v in (try_parse_latency(line) for line in lines) if v is not None]
    assert parsed == expected
