"""Date parsing and calendar arithmetic for provider payloads."""

from datetime import date, datetime, timedelta, timezone
from typing import Any

UTC = timezone.utc


def today_utc() -> date:
    return datetime.now(UTC).date()


def parse_date(value: Any) -> date | None:
    """Best-effort conversion of a provider date value to a date.

    Accepts ISO strings (optionally with a time part), epoch seconds,
    date/datetime objects, and Yahoo ``{"raw": ..., "fmt": ...}`` objects.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, dict):
        return parse_date(value.get("fmt")) or parse_date(value.get("raw"))
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, UTC).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()[:10]
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    return None


def normalize_date_key(value: Any) -> str:
    """ISO date string for a provider date value, or '' when unparseable."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else ""


def quarter_of(d: date) -> int:
    """Calendar quarter (1-4) of a date."""
    return (d.month + 2) // 3


def quarter_end(year: int, quarter: int) -> date:
    """Last day of a calendar quarter."""
    if quarter == 4:
        return date(year, 12, 31)
    return date(year, quarter * 3 + 1, 1) - timedelta(days=1)


def shift_year(d: date, years: int = 1) -> date:
    """Same month/day ``years`` later; Feb 29 falls back to Feb 28."""
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        return d.replace(year=d.year + years, day=28)


def days_between(later: date, earlier: date) -> int:
    """Signed day difference ``later - earlier``."""
    return (later - earlier).days
