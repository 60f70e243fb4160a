"""Datetime helpers.

DATE CONVENTION:
Scoreboard date keys use Eastern Time (America/New_York) in ``YYYYMMDD`` form.
A 10pm ET game on Jan 22 is a "Jan 22 game", regardless of UTC date.

All datetime fields in responses are UTC (ISO 8601).
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")


def now_utc() -> datetime:
    """Get the current time in UTC, timezone-aware."""
    return datetime.now(timezone.utc)


def today_eastern() -> date:
    """Return the current date in Eastern timezone."""
    return datetime.now(EASTERN).date()


def to_date_key(day: date) -> str:
    return day.strftime("%Y%m%d")


def from_date_key(key: str) -> date:
    return datetime.strptime(key, "%Y%m%d").date()


def parse_provider_datetime(value: str | None) -> datetime | None:
    """Parse provider timestamps such as ``2026-01-22T00:30Z``.

    Returns None for missing or unparseable values. Naive values are treated as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
