from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Attendance record of one user at one event; at most one per (user, event)."""

    check_in_id: int
    user_id: int
    event_id: int
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    hours_logged: Optional[Decimal] = None
    note: Optional[str] = None
    approved: bool = True

    @property
    def is_open(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None
