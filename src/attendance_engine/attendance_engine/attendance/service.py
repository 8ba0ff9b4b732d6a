from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import now_local
from ..common.validators import optional_text
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LATE_GRACE_MINUTES, UNSET
from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from ..events.model import Event
from ..events.repository import EventRepository
from ..notifications.outbox import CHECK_IN_RECORDED, DomainEvent, Outbox
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository
from .timing import logged_hours

logger = logging.getLogger(__name__)

# Statuses that never carry times or hours.
NON_ATTENDED = (AttendanceStatus.ABSENT, AttendanceStatus.EXCUSED)


class AttendanceService:
    """Lifecycle of the attendance record for one (user, event) pair."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        events: EventRepository,
        *,
        outbox: Optional[Outbox] = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        tz: Optional[ZoneInfo] = None,
    ):
        self._attendance = attendance
        self._events = events
        self._outbox = outbox
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._tz = tz

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or now_local(self._tz)

    def _get_event(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def check_in(self, user_id: int, event_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = self._now(now)
        event = self._get_event(event_id)

        strategy = self._factory.for_checkin(now=now, event_start=event.starts_at, grace_minutes=self._grace_minutes)
        decision = strategy.decide_checkin(now=now, event_start=event.starts_at, grace_minutes=self._grace_minutes)

        record, created = self._attendance.insert_checkin(
            user_id=int(user_id),
            event_id=event.event_id,
            check_in_time=now,
            status=decision.status,
            note=decision.note,
        )
        if not created:
            if record.check_in_time is not None:
                # Retried call: the first one already checked this user in.
                return record
            raise InvalidStateError(f"Attendance for this event is already recorded as {record.status.value}")

        logger.info("User %s checked in to event %s (%s)", user_id, event.event_id, record.status.value)
        if self._outbox is not None:
            self._outbox.publish(
                DomainEvent(
                    CHECK_IN_RECORDED,
                    {
                        "user_id": record.user_id,
                        "event_id": record.event_id,
                        "check_in_id": record.check_in_id,
                        "status": record.status.value,
                    },
                )
            )
        return record

    def check_out(self, check_in_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = self._now(now)

        record = self._attendance.get_by_id(int(check_in_id))
        if not record:
            raise NotFoundError("Check-in not found")
        if record.check_in_time is None:
            raise InvalidStateError("No check-in time recorded")
        if record.check_out_time is not None:
            raise InvalidStateError("Already checked out")

        event = self._events.get_by_id(record.event_id)
        check_out_time = max(now, record.check_in_time)
        hours = logged_hours(
            record.check_in_time,
            check_out_time,
            event.starts_at if event else None,
            event.ends_at if event else None,
        )

        if not self._attendance.complete_checkout(
            check_in_id=record.check_in_id,
            check_out_time=check_out_time,
            hours_logged=hours,
        ):
            raise InvalidStateError("Already checked out")

        logger.info("User %s checked out of event %s (%s h)", record.user_id, record.event_id, hours)
        return self._attendance.get_by_id(record.check_in_id)

    def admin_override(
        self,
        *,
        user_id: int,
        event_id: int,
        status: AttendanceStatus | str,
        check_in_time=UNSET,
        check_out_time=UNSET,
        note: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Set any status directly.

        ``check_in_time``/``check_out_time``: omitted means default (now for check-in
        on attended statuses, nothing for check-out); an explicit None clears the field.
        """
        try:
            status = AttendanceStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown attendance status: {status!r}")
        event = self._get_event(event_id)
        note = optional_text(note)

        if status in NON_ATTENDED:
            return self._attendance.upsert(
                user_id=int(user_id),
                event_id=event.event_id,
                status=status,
                check_in_time=None,
                check_out_time=None,
                hours_logged=Decimal("0"),
                note=note,
            )

        if check_in_time is UNSET:
            check_in_time = self._now(now)
        if check_out_time is UNSET:
            check_out_time = None

        hours: Optional[Decimal] = None
        if check_out_time is not None:
            if check_in_time is None:
                raise ValidationError("Check-out time requires a check-in time")
            if check_out_time < check_in_time:
                raise ValidationError("Check-out time cannot be before check-in time")
            hours = logged_hours(check_in_time, check_out_time, event.starts_at, event.ends_at)

        record = self._attendance.upsert(
            user_id=int(user_id),
            event_id=event.event_id,
            status=status,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            hours_logged=hours,
            note=note,
        )
        logger.info("Admin set user %s / event %s to %s", user_id, event.event_id, status.value)
        return record

    def mark_absent(self, user_id: int, event_id: int, *, note: Optional[str] = None) -> AttendanceRecord:
        return self.admin_override(user_id=user_id, event_id=event_id, status=AttendanceStatus.ABSENT, note=note)

    def clear(self, user_id: int, event_id: int) -> bool:
        deleted = self._attendance.delete_for_user_and_event(int(user_id), int(event_id))
        if deleted:
            logger.info("Cleared attendance of user %s for event %s", user_id, event_id)
        return deleted

    def get_record(self, check_in_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(check_in_id))
        if not record:
            raise NotFoundError("Check-in not found")
        return record

    def get_open_check_in(self, user_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_open_for_user(int(user_id))

    def history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_user(int(user_id), int(limit))
