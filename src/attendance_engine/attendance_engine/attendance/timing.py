from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import hours_between


def effective_start(check_in_time: datetime, event_start: Optional[datetime]) -> datetime:
    """Early arrivals are credited from the scheduled start, not from when they arrived."""
    if event_start is not None and check_in_time < event_start:
        return event_start
    return check_in_time


def effective_end(check_out_time: datetime, event_end: Optional[datetime]) -> datetime:
    """Staying past the scheduled end earns nothing extra."""
    if event_end is not None and check_out_time > event_end:
        return event_end
    return check_out_time


def logged_hours(
    check_in_time: datetime,
    check_out_time: datetime,
    event_start: Optional[datetime],
    event_end: Optional[datetime] = None,
) -> Decimal:
    return hours_between(effective_start(check_in_time, event_start), effective_end(check_out_time, event_end))
