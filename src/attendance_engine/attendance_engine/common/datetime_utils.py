from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError

_AM_PM = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)
_H_M = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str, tz: Optional[ZoneInfo] = None) -> datetime:
    """Parse an ISO-8601 timestamp into naive wall-clock time of ``tz`` (server local if None)."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz).replace(tzinfo=None)
    return parsed


def load_timezone(name: Optional[str]) -> Optional[ZoneInfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        raise ValidationError(f"Unknown time zone: {name!r}")


def now_local(tz: Optional[ZoneInfo] = None) -> datetime:
    """Current wall-clock time in the organization's zone, as a naive datetime.

    Note: Wrapped so tests can patch/mocked easier.
    """
    if tz is None:
        return datetime.now()
    return datetime.now(tz).replace(tzinfo=None)


def parse_wall_clock(value: str) -> time:
    """Parse "14:00", "14:00:30" or "6:00 PM" into a time."""
    v = (value or "").strip()
    m = _AM_PM.match(v)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        period = m.group(3).upper()
        if not 1 <= hours <= 12 or minutes > 59:
            raise ValidationError(f"Invalid time: {value!r}")
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
        return time(hours, minutes)

    m = _H_M.match(v)
    if m:
        hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
        if hours > 23 or minutes > 59 or seconds > 59:
            raise ValidationError(f"Invalid time: {value!r}")
        return time(hours, minutes, seconds)

    raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def combine_local(day: date, wall_clock: str) -> datetime:
    return datetime.combine(day, parse_wall_clock(wall_clock))


def hours_between(start: datetime, end: datetime) -> Decimal:
    """Elapsed hours from start to end, never negative, rounded to 2 places."""
    seconds = max(timedelta(0), end - start).total_seconds()
    return (Decimal(str(seconds)) / Decimal(3600)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """Return [first day of month, first day of next month)."""
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    start = date(int(year), int(month), 1)
    if start.month == 12:
        return start, date(start.year + 1, 1, 1)
    return start, date(start.year, start.month + 1, 1)
