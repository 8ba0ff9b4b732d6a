from __future__ import annotations

import logging
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..core.constants import (
    MILESTONE_CHECKIN_COUNTS,
    PERFECT_ATTENDANCE_MIN_EVENTS,
    PERFECT_ATTENDANCE_STEP,
)
from ..core.enums import AttendanceStatus, ExcuseStatus
from ..events.repository import EventRepository
from .notifier import Notifier
from .outbox import CHECK_IN_RECORDED, EXCUSE_DECIDED, DomainEvent, Outbox

logger = logging.getLogger(__name__)

ATTENDED = (AttendanceStatus.ON_TIME, AttendanceStatus.LATE)


class MilestoneHandler:
    """Reacts to ``check_in.recorded``: milestone counts and perfect-attendance streaks."""

    def __init__(self, attendance: AttendanceRepository, notifier: Notifier):
        self._attendance = attendance
        self._notifier = notifier

    def __call__(self, event: DomainEvent) -> None:
        user_id = int(event.payload["user_id"])

        attended = self._attendance.count_for_user(user_id, statuses=ATTENDED)
        if attended in MILESTONE_CHECKIN_COUNTS:
            self._notifier.send(
                user_id,
                "Milestone reached!",
                f"You've checked in to {attended} events. Keep it up!",
                {"kind": "milestone", "count": attended},
            )

        total = self._attendance.count_for_user(user_id)
        if (
            total >= PERFECT_ATTENDANCE_MIN_EVENTS
            and attended == total
            and total % PERFECT_ATTENDANCE_STEP == 0
        ):
            self._notifier.send(
                user_id,
                "Perfect attendance!",
                f"You've attended all {total} events so far.",
                {"kind": "perfect_attendance", "count": total},
            )


class ExcuseDecisionHandler:
    """Tells the requester how their excuse was decided."""

    def __init__(self, notifier: Notifier, events: Optional[EventRepository] = None):
        self._notifier = notifier
        self._events = events

    def __call__(self, event: DomainEvent) -> None:
        payload = event.payload
        status = ExcuseStatus(payload["status"])
        title = "Excuse approved" if status == ExcuseStatus.APPROVED else "Excuse denied"

        event_title = None
        if self._events is not None:
            found = self._events.get_by_id(int(payload["event_id"]))
            event_title = found.title if found else None

        body = f"Your excuse for {event_title or 'the event'} was {status.value.lower()}."
        self._notifier.send(
            int(payload["user_id"]),
            title,
            body,
            {"kind": "excuse", "request_id": payload["request_id"], "status": status.value},
        )


def subscribe_default_handlers(
    outbox: Outbox,
    *,
    attendance: AttendanceRepository,
    events: EventRepository,
    notifier: Notifier,
) -> None:
    outbox.subscribe(CHECK_IN_RECORDED, MilestoneHandler(attendance, notifier))
    outbox.subscribe(EXCUSE_DECIDED, ExcuseDecisionHandler(notifier, events))
    logger.debug("Subscribed default notification handlers")
