"""
Calendar-date helpers

All digest comparisons are made on calendar dates in the site timezone,
never on timestamps.
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from .config import settings

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

_FALLBACK_FORMATS = ("%d/%m/%Y", "%d %b %Y", "%d %B %Y")


def today_in_timezone(tz_name: str = None) -> date:
    """Current calendar date in the site timezone"""
    return datetime.now(ZoneInfo(tz_name or settings.timezone)).date()


def parse_iso_date(value, tz_name: str = None) -> Optional[date]:
    """
    Parse a date-ish value to a calendar date

    Aware timestamps are converted to the site timezone before the time of
    day is dropped. Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_local_date(value, tz_name)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return _to_local_date(datetime.fromisoformat(text.replace("Z", "+00:00")), tz_name)
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _to_local_date(dt: datetime, tz_name: str = None) -> date:
    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz_name or settings.timezone))
    return dt.date()


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def format_event_date(value) -> str:
    """Display form, e.g. 'Sun 15 Jun 2025'; unparseable input is returned as-is"""
    parsed = parse_iso_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return f"{parsed.strftime('%a')} {parsed.day} {parsed.strftime('%b %Y')}"
