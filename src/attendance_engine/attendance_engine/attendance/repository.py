from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, check_in_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_event(self, user_id: int, event_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert_checkin(
        self,
        *,
        user_id: int,
        event_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> tuple[AttendanceRecord, bool]:
        """Insert-if-absent on (user_id, event_id).

        Returns the stored record and whether this call created it.
        """

        raise NotImplementedError

    def complete_checkout(self, *, check_in_id: int, check_out_time: datetime, hours_logged: Decimal) -> bool:
        """Set check-out only while the record is still open. False if it was not."""

        raise NotImplementedError

    def upsert(
        self,
        *,
        user_id: int,
        event_id: int,
        status: AttendanceStatus,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        hours_logged: Optional[Decimal],
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Atomic insert-or-update on (user_id, event_id). A None note keeps the stored one."""

        raise NotImplementedError

    def delete_for_user_and_event(self, user_id: int, event_id: int) -> bool:
        raise NotImplementedError

    def insert_absent_if_missing(self, *, event_id: int, user_ids: Iterable[int]) -> int:
        """Create ABSENT records for users without any record. Returns the number created."""

        raise NotImplementedError

    def list_open_for_event(self, event_id: int) -> Sequence[AttendanceRecord]:
        """Attended (ON_TIME/LATE) records with a check-in and no check-out."""

        raise NotImplementedError

    def count_for_user(self, user_id: int, *, statuses: Optional[Iterable[AttendanceStatus]] = None) -> int:
        """Count approved records, optionally restricted to some statuses."""

        raise NotImplementedError
