from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from ..common.datetime_utils import now_local, parse_wall_clock
from ..common.validators import require_int, require_non_empty
from ..core.enums import RecurrenceFrequency
from ..core.exceptions import NotFoundError, ValidationError
from .model import Event, NewRecurringEvent, RecurringEvent
from .recurrence import validate_recurrence
from .repository import EventRepository

logger = logging.getLogger(__name__)


class EventService:
    def __init__(self, events: EventRepository, *, tz: Optional[ZoneInfo] = None):
        self._events = events
        self._tz = tz

    def get_event(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def get_recurring_event(self, recurring_event_id: int) -> RecurringEvent:
        series = self._events.get_recurring(int(recurring_event_id))
        if not series:
            raise NotFoundError("Recurring event not found")
        return series

    def create_recurring_event(
        self,
        *,
        organization_id: int,
        title: str,
        frequency: RecurrenceFrequency | str,
        start_date: date,
        end_date: date,
        start_time: str,
        end_time: str,
        days_of_week: Iterable[int] = (),
        team_id: Optional[int] = None,
        participating_team_ids: Iterable[int] = (),
    ) -> RecurringEvent:
        title = require_non_empty(title, "Title")
        if parse_wall_clock(start_time) >= parse_wall_clock(end_time):
            raise ValidationError("Start time must be before end time")

        days = tuple(days_of_week or ())
        dates = validate_recurrence(start_date, end_date, frequency, days)

        series = NewRecurringEvent(
            organization_id=int(organization_id),
            title=title,
            frequency=RecurrenceFrequency(frequency),
            days_of_week=days,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time.strip(),
            end_time=end_time.strip(),
            team_id=require_int(team_id, "team_id") if team_id is not None else None,
            participating_team_ids=tuple(require_int(t, "participating_team_ids") for t in participating_team_ids or ()),
        )
        created = self._events.create_recurring(series=series, dates=dates)
        logger.info(
            "Created recurring event %s (%s) with %d occurrence(s)",
            created.recurring_event_id,
            created.frequency.value,
            len(dates),
        )
        return created

    def delete_recurring_event(
        self,
        recurring_event_id: int,
        *,
        future_only: bool = False,
        today: Optional[date] = None,
    ) -> int:
        self.get_recurring_event(recurring_event_id)
        today = today or now_local(self._tz).date()
        deleted = self._events.delete_recurring(
            recurring_event_id=int(recurring_event_id),
            future_only=bool(future_only),
            today=today,
        )
        logger.info("Deleted recurring event %s (%d event(s) removed)", recurring_event_id, deleted)
        return deleted
