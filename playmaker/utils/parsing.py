"""
Generic parsing utilities for provider payloads.

Provider stat cells arrive as strings, numbers or placeholders such as "--".
Everything here degrades to a neutral value instead of raising.
"""

from __future__ import annotations

_PLACEHOLDERS = (None, "", "-", "--")


def parse_int(value: str | int | float | None) -> int | None:
    """Parse a value to an integer, handling common edge cases.

    Accepts strings, ints, floats, or None. Returns None for empty strings,
    "-" or "--". A leading "+" (plus/minus columns) is accepted.
    """
    if isinstance(value, str):
        value = value.strip()
    if value in _PLACEHOLDERS:
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError, OverflowError):
        return None


def parse_float(value: str | int | float | None) -> float | None:
    """Parse a value to a float, handling common edge cases."""
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    if value in _PLACEHOLDERS:
        return None
    try:
        # Handle time format like "32:45" (minutes:seconds)
        if ":" in str(value):
            parts = str(value).split(":")
            if len(parts) == 2:
                return float(parts[0]) + float(parts[1]) / 60
        return float(value)
    except (ValueError, TypeError):
        return None


def parse_shooting(value: str | None) -> tuple[int, int]:
    """Parse a "made-attempted" shooting string.

    "5-10" -> (5, 10). Placeholders ("--", "-", "") and None -> (0, 0).
    Malformed halves default to 0.
    """
    if value is None:
        return (0, 0)
    text = str(value).strip()
    if text in _PLACEHOLDERS:
        return (0, 0)
    made, sep, attempted = text.partition("-")
    if not sep:
        return (0, 0)
    return (max(parse_int(made) or 0, 0), max(parse_int(attempted) or 0, 0))
