"""Occurrence generation for recurring events.

``generate_occurrences`` is a pure function of its inputs. ``validate_recurrence``
wraps it with the rules a series must satisfy before anything is persisted.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Iterator

from ..core.constants import MAX_OCCURRENCES
from ..core.enums import RecurrenceFrequency
from ..core.exceptions import ValidationError

ONE_DAY = timedelta(days=1)


def weekday_sunday_first(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += ONE_DAY


def _monthly(start: date, end: date) -> Iterator[date]:
    day_of_month = start.day
    year, month = start.year, start.month
    while date(year, month, 1) <= end:
        try:
            candidate = date(year, month, day_of_month)
        except ValueError:
            candidate = None  # month is too short
        if candidate is not None and start <= candidate <= end:
            yield candidate
        month += 1
        if month > 12:
            year, month = year + 1, 1


def generate_occurrences(
    start_date: date,
    end_date: date,
    frequency: RecurrenceFrequency,
    days_of_week: Iterable[int] = (),
) -> list[date]:
    """Expand a recurrence pattern over the inclusive range [start_date, end_date]."""
    frequency = RecurrenceFrequency(frequency)
    wanted = set(days_of_week or ())

    if frequency == RecurrenceFrequency.DAILY:
        return list(_days(start_date, end_date))

    if frequency == RecurrenceFrequency.WEEKLY:
        return [d for d in _days(start_date, end_date) if weekday_sunday_first(d) in wanted]

    if frequency == RecurrenceFrequency.BIWEEKLY:
        week_start = start_date - timedelta(days=weekday_sunday_first(start_date))
        return [
            d
            for d in _days(start_date, end_date)
            if ((d - week_start).days // 7) % 2 == 0 and weekday_sunday_first(d) in wanted
        ]

    return list(_monthly(start_date, end_date))


def validate_recurrence(
    start_date: date,
    end_date: date,
    frequency: RecurrenceFrequency,
    days_of_week: Iterable[int] = (),
) -> list[date]:
    """Validate a series definition and return its occurrences.

    Raises ValidationError for a non-positive range, a missing or invalid
    ``days_of_week`` on WEEKLY/BIWEEKLY, and for 0 or more than
    ``MAX_OCCURRENCES`` occurrences.
    """
    try:
        frequency = RecurrenceFrequency(frequency)
    except ValueError:
        raise ValidationError(f"Unknown frequency: {frequency!r}")

    if end_date <= start_date:
        raise ValidationError("End date must be after start date")

    days = tuple(days_of_week or ())
    if any(not isinstance(d, int) or not 0 <= d <= 6 for d in days):
        raise ValidationError("daysOfWeek values must be between 0 (Sunday) and 6 (Saturday)")
    if frequency.needs_days_of_week and not days:
        raise ValidationError("daysOfWeek is required for WEEKLY and BIWEEKLY frequencies")

    dates = generate_occurrences(start_date, end_date, frequency, days)
    if not dates:
        raise ValidationError("No event occurrences generated for the given parameters")
    if len(dates) > MAX_OCCURRENCES:
        raise ValidationError(f"Too many occurrences (max {MAX_OCCURRENCES}). Please shorten the date range.")
    return dates
