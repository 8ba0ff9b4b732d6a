"""Sweeps over recently ended events.

Both sweeps look at non-ad-hoc events whose scheduled end falls in
``[now - lookback, now)`` and are safe to re-run over the same window: they
only ever insert missing rows or close records that are still open.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..attendance.repository import AttendanceRepository
from ..attendance.timing import logged_hours
from ..common.datetime_utils import now_local
from ..core.constants import PERIODIC_LOOKBACK_MINUTES
from ..events.model import Event
from ..events.repository import EventRepository

logger = logging.getLogger(__name__)


class SweepService:
    def __init__(self, attendance: AttendanceRepository, events: EventRepository, *, tz: Optional[ZoneInfo] = None):
        self._attendance = attendance
        self._events = events
        self._tz = tz

    def ended_events(
        self,
        *,
        now: datetime,
        lookback_minutes: int,
        organization_id: Optional[int] = None,
    ) -> Sequence[Event]:
        window_start = now - timedelta(minutes=int(lookback_minutes))
        candidates = self._events.list_between(
            start=window_start.date(),
            end=now.date(),
            organization_id=organization_id,
        )
        ended = []
        for event in candidates:
            try:
                ends_at = event.ends_at
            except Exception:
                logger.exception("Skipping event %s with unreadable end time %r", event.event_id, event.end_time)
                continue
            if window_start <= ends_at < now:
                ended.append(event)
        return ended

    def mark_absent_for_ended_events(
        self,
        organization_id: Optional[int] = None,
        *,
        lookback_minutes: int = PERIODIC_LOOKBACK_MINUTES,
        now: Optional[datetime] = None,
    ) -> int:
        """Insert ABSENT for roster members with no record. Returns the number of records created."""
        now = now or now_local(self._tz)
        created = 0
        for event in self.ended_events(now=now, lookback_minutes=lookback_minutes, organization_id=organization_id):
            try:
                roster = self._events.list_roster_user_ids(event=event)
                if not roster:
                    continue
                n = self._attendance.insert_absent_if_missing(event_id=event.event_id, user_ids=roster)
                if n:
                    logger.info("Marked %d absent for event %s (%s)", n, event.event_id, event.title)
                created += n
            except Exception:
                logger.exception("Auto-absence failed for event %s", event.event_id)
        return created

    def auto_checkout_ended_events(
        self,
        organization_id: Optional[int] = None,
        *,
        lookback_minutes: int = PERIODIC_LOOKBACK_MINUTES,
        now: Optional[datetime] = None,
    ) -> int:
        """Close open check-ins at the event's scheduled end. Returns the number closed."""
        now = now or now_local(self._tz)
        closed = 0
        for event in self.ended_events(now=now, lookback_minutes=lookback_minutes, organization_id=organization_id):
            try:
                open_records = self._attendance.list_open_for_event(event.event_id)
            except Exception:
                logger.exception("Auto-checkout could not load check-ins for event %s", event.event_id)
                continue

            for record in open_records:
                try:
                    check_out_time = max(event.ends_at, record.check_in_time)
                    hours = logged_hours(record.check_in_time, check_out_time, event.starts_at, event.ends_at)
                    if self._attendance.complete_checkout(
                        check_in_id=record.check_in_id,
                        check_out_time=check_out_time,
                        hours_logged=hours,
                    ):
                        closed += 1
                except Exception:
                    logger.exception("Auto-checkout failed for check-in %s", record.check_in_id)
        if closed:
            logger.info("Auto-checked out %d record(s)", closed)
        return closed
