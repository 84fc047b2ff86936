"""
Calendar key helpers.

All period keys are lexically sortable strings:
- day:   YYYY-MM-DD
- week:  YYYY-Www (ISO week-year and week number, Monday start)
- month: YYYY-MM

Parsing failures raise InvalidDateKeyError; callers validate keys at the
record boundary so the engines never see malformed input.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from backend.core.config import settings
from backend.core.errors import InvalidDateKeyError

DayLike = Union[str, date]

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WEEK_RE = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_day_key(key: str) -> date:
    if not isinstance(key, str) or not _DAY_RE.match(key):
        raise InvalidDateKeyError(f"Invalid day key: {key!r}")
    try:
        return date.fromisoformat(key)
    except ValueError:
        raise InvalidDateKeyError(f"Invalid day key: {key!r}") from None


def validate_week_key(key: str) -> str:
    match = _WEEK_RE.match(key) if isinstance(key, str) else None
    if not match:
        raise InvalidDateKeyError(f"Invalid week key: {key!r}")
    year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(year, week, 1)
    except ValueError:
        raise InvalidDateKeyError(f"Invalid week key: {key!r}") from None
    return key


def validate_month_key(key: str) -> str:
    match = _MONTH_RE.match(key) if isinstance(key, str) else None
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise InvalidDateKeyError(f"Invalid month key: {key!r}")
    return key


def as_date(value: DayLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_day_key(value)


def day_key(value: DayLike) -> str:
    return as_date(value).isoformat()


def week_key(value: DayLike) -> str:
    iso_year, iso_week, _ = as_date(value).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_key(value: DayLike) -> str:
    d = as_date(value)
    return f"{d.year}-{d.month:02d}"


def _zone(tz_name: Optional[str] = None):
    name = tz_name or settings.TIMEZONE
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return timezone.utc


def today(tz_name: Optional[str] = None) -> date:
    """Current calendar day in the configured timezone."""
    return datetime.now(_zone(tz_name)).date()


def now(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(_zone(tz_name))


def today_key(tz_name: Optional[str] = None) -> str:
    return today(tz_name).isoformat()


def shift_days(value: DayLike, days: int) -> str:
    return (as_date(value) + timedelta(days=days)).isoformat()


def days_in_range(start: DayLike, end: DayLike) -> List[str]:
    """Inclusive list of day keys from start to end (empty if end < start)."""
    first, last = as_date(start), as_date(end)
    span = (last - first).days
    return [(first + timedelta(days=i)).isoformat() for i in range(span + 1)]


def last_n_days(n: int, end: Optional[DayLike] = None) -> List[str]:
    """The n day keys ending at `end` (default today), oldest first."""
    last = as_date(end) if end is not None else today()
    return days_in_range(last - timedelta(days=n - 1), last)


def day_of_week(value: DayLike) -> str:
    """Short weekday label ("Mon", "Tue", ...) for chart axes."""
    return as_date(value).strftime("%a")
