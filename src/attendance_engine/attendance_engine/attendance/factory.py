from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, event_start: datetime, grace_minutes: int) -> AttendanceStrategy:
        if now <= event_start + timedelta(minutes=int(grace_minutes)):
            return OnTimeStrategy()
        return LateStrategy()
