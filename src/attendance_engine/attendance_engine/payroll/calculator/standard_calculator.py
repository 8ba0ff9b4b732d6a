from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...core.enums import DeductionType
from ..model import Deduction, StaffPayProfile
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: salary wins over hourly rate; deductions all taken off the same gross."""

    def gross_pay(self, profile: StaffPayProfile, total_hours: Decimal) -> Optional[Decimal]:
        if profile.salary_amount is not None:
            return Decimal(profile.salary_amount)
        if profile.hourly_rate is not None:
            return Decimal(profile.hourly_rate) * Decimal(total_hours)
        return None

    def deduction_amount(self, deduction: Deduction, gross: Decimal) -> Decimal:
        if deduction.type == DeductionType.PERCENT:
            return Decimal(deduction.value) * gross / Decimal(100)
        return Decimal(deduction.value)
