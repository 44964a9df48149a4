"""
Latency extraction from ping output lines.

One pattern covers the common platforms:
    Linux/macOS: 64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=23.4 ms
    Windows:     Reply from 1.1.1.1: bytes=32 time=23ms TTL=57

The pattern needs at least two digits before the unit, so single-digit
readings ("time=5ms", "time<1ms") are not matched.
"""

import re

LATENCY_PATTERN = re.compile(r"(\d+\.?\d+?)\s*?ms")


class LatencyParseError(ValueError):
    """Raised when a line carries no usable latency value."""


def parse_latency(line: str) -> float:
    """
    Extract the first `<number>ms` value from a line of ping output.

    Args:
        line: One line of text from the probe

    Returns:
        Latency in milliseconds

    Raises:
        LatencyParseError: If the line has no match or the match is not a number
    """
    match = LATENCY_PATTERN.search(line)
    if match is None:
        raise LatencyParseError("No match found in the time string")

    raw = match.group(1)
    try:
        return float(raw)
    except ValueError as e:
        raise LatencyParseError(f"Error converting string to float: {raw!r}") from e


def try_parse_latency(line: str) -> float | None:
    """Like parse_latency, but returns None for lines without a latency."""
    try:
        return parse_latency(line)
    except LatencyParseError:
        return None
