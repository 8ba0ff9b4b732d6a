from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Deduction, HoursEntry, StaffPayProfile


class PayrollRepository(Protocol):
    def get_pay_profile(self, *, organization_id: int, user_id: int) -> Optional[StaffPayProfile]:
        raise NotImplementedError

    def list_staff_with_records(self, *, organization_id: int, start: date, end: date) -> Sequence[StaffPayProfile]:
        """Staff members (OWNER/ADMIN/MANAGER/COACH) holding any attendance record,
        whatever its status, on the organization's events dated in [start, end)."""

        raise NotImplementedError

    def set_pay_rate(
        self,
        *,
        organization_id: int,
        user_id: int,
        hourly_rate: Optional[Decimal],
        salary_amount: Optional[Decimal],
    ) -> bool:
        raise NotImplementedError

    def get_deductions(self, organization_id: int) -> Sequence[Deduction]:
        raise NotImplementedError

    def replace_deductions(self, *, organization_id: int, deductions: Sequence[Deduction]) -> None:
        raise NotImplementedError

    def list_hours_entries(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> Sequence[HoursEntry]:
        """ON_TIME/LATE records of the organization's events dated in [start, end)."""

        raise NotImplementedError
