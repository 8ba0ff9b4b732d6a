from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, event_start: datetime, grace_minutes: int) -> StatusDecision:
        late_minutes = int((now - event_start).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"{late_minutes} min late" if late_minutes else None)
