from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import ExcuseStatus
from .model import ExcuseRequest


class ExcuseRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[ExcuseRequest]:
        raise NotImplementedError

    def get_for_user_and_event(self, user_id: int, event_id: int) -> Optional[ExcuseRequest]:
        raise NotImplementedError

    def create(self, *, user_id: int, event_id: int, reason: str) -> ExcuseRequest:
        """Insert a PENDING request with attempt_count 1. A duplicate pair raises ConflictError."""

        raise NotImplementedError

    def resubmit(self, *, request_id: int, reason: str, expected_attempt: int) -> bool:
        """DENIED -> PENDING with attempt_count + 1, only if attempt_count is still ``expected_attempt``."""

        raise NotImplementedError

    def decide(self, *, request_id: int, status: ExcuseStatus) -> Optional[ExcuseRequest]:
        """Move a PENDING request to APPROVED or DENIED.

        Approval also upserts the attendance record to EXCUSED in the same
        transaction. Returns None when the request was no longer PENDING.
        """

        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError

    def upsert_pending(self, *, user_id: int, event_id: int, reason: str) -> Optional[ExcuseRequest]:
        """Create a PENDING request or refresh the reason of an existing PENDING one.

        Requests already decided are left alone; returns None in that case.
        """

        raise NotImplementedError

    def delete_pending(self, *, user_id: int, event_id: int) -> bool:
        raise NotImplementedError

    def list_pending(self, organization_id: int) -> Sequence[ExcuseRequest]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[ExcuseRequest]:
        raise NotImplementedError
