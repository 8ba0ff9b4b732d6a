from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import DeductionType


@dataclass(frozen=True)
class StaffPayProfile:
    """Pay configuration of one staff member in one organization. At most one mode is set."""

    user_id: int
    full_name: str
    hourly_rate: Optional[Decimal] = None
    salary_amount: Optional[Decimal] = None

    @property
    def is_paid(self) -> bool:
        return self.hourly_rate is not None or self.salary_amount is not None


@dataclass(frozen=True)
class Deduction:
    name: str
    type: DeductionType
    value: Decimal


@dataclass(frozen=True)
class AppliedDeduction:
    name: str
    type: DeductionType
    value: Decimal
    amount: Decimal


@dataclass(frozen=True)
class HoursEntry:
    user_id: int
    event_id: int
    event_title: str
    date: date
    hours: Decimal


@dataclass(frozen=True)
class PayrollSummary:
    user_id: int
    full_name: str
    month: int
    year: int
    total_hours: Decimal
    hourly_rate: Optional[Decimal]
    salary_amount: Optional[Decimal]
    # None means the member has no pay configured, which is not the same as 0.
    gross_pay: Optional[Decimal]
    net_pay: Optional[Decimal]
    deductions: tuple[AppliedDeduction, ...] = ()
    entries: tuple[HoursEntry, ...] = field(default_factory=tuple)

    @property
    def total_deductions(self) -> Decimal:
        return sum((d.amount for d in self.deductions), Decimal("0"))
