from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status as stored in the database."""

    ON_TIME = "ON_TIME"
    LATE = "LATE"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"

    @property
    def is_attended(self) -> bool:
        return self in (AttendanceStatus.ON_TIME, AttendanceStatus.LATE)


class ExcuseStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class RecurrenceFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"

    @property
    def needs_days_of_week(self) -> bool:
        return self in (RecurrenceFrequency.WEEKLY, RecurrenceFrequency.BIWEEKLY)


class DeductionType(str, Enum):
    PERCENT = "PERCENT"
    FLAT = "FLAT"


class RsvpStatus(str, Enum):
    GOING = "GOING"
    MAYBE = "MAYBE"
    NOT_GOING = "NOT_GOING"
