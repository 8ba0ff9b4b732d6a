from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_EXCUSE_REASON, MAX_EXCUSE_ATTEMPTS
from ..core.enums import ExcuseStatus, RsvpStatus
from ..core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..events.repository import EventRepository
from ..notifications.outbox import EXCUSE_DECIDED, DomainEvent, Outbox
from .model import ExcuseRequest
from .repository import ExcuseRepository

logger = logging.getLogger(__name__)


class ExcuseService:
    def __init__(self, excuses: ExcuseRepository, events: EventRepository, *, outbox: Optional[Outbox] = None):
        self._excuses = excuses
        self._events = events
        self._outbox = outbox

    def _require_event(self, event_id: int) -> None:
        if not self._events.get_by_id(int(event_id)):
            raise NotFoundError("Event not found")

    def get(self, request_id: int) -> ExcuseRequest:
        req = self._excuses.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Excuse request not found")
        return req

    def submit(self, user_id: int, event_id: int, reason: str) -> ExcuseRequest:
        reason = require_non_empty(reason, "Reason")
        self._require_event(event_id)

        existing = self._excuses.get_for_user_and_event(int(user_id), int(event_id))
        if existing is None:
            created = self._excuses.create(user_id=int(user_id), event_id=int(event_id), reason=reason)
            logger.info("Excuse %s submitted by user %s for event %s", created.request_id, user_id, event_id)
            return created

        if existing.status == ExcuseStatus.PENDING:
            raise InvalidStateError("An excuse request for this event is already pending")
        if existing.status == ExcuseStatus.APPROVED:
            raise InvalidStateError("Excuse request has already been approved")
        if existing.attempt_count >= MAX_EXCUSE_ATTEMPTS:
            raise InvalidStateError(f"Maximum attempts ({MAX_EXCUSE_ATTEMPTS}) reached for this event")

        if not self._excuses.resubmit(
            request_id=existing.request_id,
            reason=reason,
            expected_attempt=existing.attempt_count,
        ):
            raise ConflictError("Excuse request changed concurrently, please retry")

        logger.info(
            "Excuse %s resubmitted by user %s (attempt %d)",
            existing.request_id,
            user_id,
            existing.attempt_count + 1,
        )
        return self._excuses.get_by_id(existing.request_id)

    def approve(self, request_id: int) -> ExcuseRequest:
        return self._decide(request_id, ExcuseStatus.APPROVED)

    def deny(self, request_id: int) -> ExcuseRequest:
        return self._decide(request_id, ExcuseStatus.DENIED)

    def _decide(self, request_id: int, status: ExcuseStatus) -> ExcuseRequest:
        req = self.get(request_id)
        if req.status != ExcuseStatus.PENDING:
            raise InvalidStateError(f"Excuse request is already {req.status.value}")

        decided = self._excuses.decide(request_id=req.request_id, status=status)
        if decided is None:
            raise InvalidStateError("Excuse request was decided concurrently")

        logger.info("Excuse %s %s", decided.request_id, status.value)
        if self._outbox is not None:
            self._outbox.publish(
                DomainEvent(
                    EXCUSE_DECIDED,
                    {
                        "request_id": decided.request_id,
                        "user_id": decided.user_id,
                        "event_id": decided.event_id,
                        "status": decided.status.value,
                    },
                )
            )
        return decided

    def cancel(self, request_id: int) -> None:
        req = self.get(request_id)
        self._excuses.delete(req.request_id)
        logger.info("Excuse %s cancelled", req.request_id)

    def sync_rsvp(
        self,
        user_id: int,
        event_id: int,
        status: Optional[RsvpStatus | str],
        *,
        previous_status: Optional[RsvpStatus | str] = None,
        note: Optional[str] = None,
    ) -> Optional[ExcuseRequest]:
        """Keep the excuse request in step with an RSVP change.

        ``status=None`` means the RSVP was deleted. Only PENDING requests are
        ever created, refreshed or retracted here, and a retraction needs
        ``previous_status`` to have been NOT_GOING.
        """
        try:
            status = RsvpStatus(status) if status is not None else None
            previous_status = RsvpStatus(previous_status) if previous_status is not None else None
        except ValueError:
            raise ValidationError("Unknown RSVP status")

        self._require_event(event_id)

        if status == RsvpStatus.NOT_GOING:
            reason = optional_text(note) or DEFAULT_EXCUSE_REASON
            return self._excuses.upsert_pending(user_id=int(user_id), event_id=int(event_id), reason=reason)

        if previous_status == RsvpStatus.NOT_GOING:
            if self._excuses.delete_pending(user_id=int(user_id), event_id=int(event_id)):
                logger.info("Retracted pending excuse of user %s for event %s", user_id, event_id)
        return None

    def list_pending(self, organization_id: int) -> Sequence[ExcuseRequest]:
        return self._excuses.list_pending(int(organization_id))

    def list_for_user(self, user_id: int) -> Sequence[ExcuseRequest]:
        return self._excuses.list_for_user(int(user_id))
