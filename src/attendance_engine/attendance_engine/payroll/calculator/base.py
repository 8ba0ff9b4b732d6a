from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from ..model import Deduction, StaffPayProfile


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def gross_pay(self, profile: StaffPayProfile, total_hours: Decimal) -> Optional[Decimal]:
        raise NotImplementedError

    @abstractmethod
    def deduction_amount(self, deduction: Deduction, gross: Decimal) -> Decimal:
        raise NotImplementedError

    def net_pay(self, gross: Decimal, deduction_amounts: list[Decimal]) -> Decimal:
        return max(Decimal("0"), gross - sum(deduction_amounts, Decimal("0")))
