from __future__ import annotations

import csv
import io
import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import month_bounds
from ..common.validators import require_non_empty
from ..core.constants import UNSET
from ..core.enums import DeductionType
from ..core.exceptions import NotFoundError, ValidationError
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import AppliedDeduction, Deduction, HoursEntry, PayrollSummary, StaffPayProfile
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

CSV_FIELDS = [
    "user_id",
    "full_name",
    "month",
    "year",
    "total_hours",
    "hourly_rate",
    "salary_amount",
    "gross_pay",
    "total_deductions",
    "net_pay",
]


def round2(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field_name: str) -> Decimal:
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    return d


class PayrollService:
    def __init__(self, payroll: PayrollRepository, *, calculator: Optional[PayrollCalculator] = None):
        self._payroll = payroll
        self._calculator = calculator or StandardPayrollCalculator()

    def compute_summary(self, organization_id: int, month: int, year: int) -> list[PayrollSummary]:
        """One summary per staff member with any attendance record in the month, ordered by user id.

        Hours come from ON_TIME/LATE records only, so a salaried member whose
        records are all EXCUSED/ABSENT is still listed with zero hours.
        """
        start, end = month_bounds(month, year)
        staff = self._payroll.list_staff_with_records(organization_id=int(organization_id), start=start, end=end)
        if not staff:
            return []

        entries = self._payroll.list_hours_entries(organization_id=int(organization_id), start=start, end=end)
        by_user: dict[int, list[HoursEntry]] = defaultdict(list)
        for e in entries:
            by_user[e.user_id].append(e)
        deductions = self._payroll.get_deductions(int(organization_id))

        summaries = [
            self._build(profile, by_user.get(profile.user_id, ()), deductions, month=int(month), year=int(year))
            for profile in sorted(staff, key=lambda p: p.user_id)
        ]
        logger.info(
            "Payroll for org %s %02d/%d: %d member(s)",
            organization_id,
            int(month),
            int(year),
            len(summaries),
        )
        return summaries

    def member_summary(self, organization_id: int, user_id: int, month: int, year: int) -> PayrollSummary:
        """Summary for one member; returned with zero hours when nothing was attended."""
        start, end = month_bounds(month, year)
        profile = self._payroll.get_pay_profile(organization_id=int(organization_id), user_id=int(user_id))
        if not profile:
            raise NotFoundError("Staff member not found in organization")
        entries = self._payroll.list_hours_entries(
            organization_id=int(organization_id),
            start=start,
            end=end,
            user_id=int(user_id),
        )
        deductions = self._payroll.get_deductions(int(organization_id))
        return self._build(profile, entries, deductions, month=int(month), year=int(year))

    def _build(
        self,
        profile: StaffPayProfile,
        entries: Sequence[HoursEntry],
        deductions: Sequence[Deduction],
        *,
        month: int,
        year: int,
    ) -> PayrollSummary:
        total_hours = sum((Decimal(e.hours) for e in entries), Decimal("0"))
        gross = self._calculator.gross_pay(profile, total_hours)

        applied: list[AppliedDeduction] = []
        net: Optional[Decimal] = None
        if gross is not None:
            amounts = [self._calculator.deduction_amount(d, gross) for d in deductions]
            net = self._calculator.net_pay(gross, amounts)
            applied = [
                AppliedDeduction(name=d.name, type=d.type, value=d.value, amount=round2(amount))
                for d, amount in zip(deductions, amounts)
            ]

        return PayrollSummary(
            user_id=profile.user_id,
            full_name=profile.full_name,
            month=month,
            year=year,
            total_hours=round2(total_hours),
            hourly_rate=profile.hourly_rate,
            salary_amount=profile.salary_amount,
            gross_pay=round2(gross),
            net_pay=round2(net),
            deductions=tuple(applied),
            entries=tuple(entries),
        )

    def set_pay_rate(
        self,
        organization_id: int,
        user_id: int,
        *,
        hourly_rate=UNSET,
        salary_amount=UNSET,
    ) -> StaffPayProfile:
        """Update a member's pay. Setting one mode to a value clears the other; None clears a mode."""
        profile = self._payroll.get_pay_profile(organization_id=int(organization_id), user_id=int(user_id))
        if not profile:
            raise NotFoundError("Staff member not found in organization")

        hourly = profile.hourly_rate
        salary = profile.salary_amount
        if hourly_rate is not UNSET and salary_amount is not UNSET and hourly_rate is not None and salary_amount is not None:
            raise ValidationError("Set either an hourly rate or a salary, not both")

        if hourly_rate is not UNSET:
            hourly = self._rate(hourly_rate, "Hourly rate")
            if hourly is not None:
                salary = None
        if salary_amount is not UNSET:
            salary = self._rate(salary_amount, "Salary amount")
            if salary is not None:
                hourly = None

        self._payroll.set_pay_rate(
            organization_id=int(organization_id),
            user_id=int(user_id),
            hourly_rate=hourly,
            salary_amount=salary,
        )
        logger.info("Pay rate updated for user %s in org %s", user_id, organization_id)
        return StaffPayProfile(user_id=profile.user_id, full_name=profile.full_name, hourly_rate=hourly, salary_amount=salary)

    @staticmethod
    def _rate(value: Any, field_name: str) -> Optional[Decimal]:
        if value is None:
            return None
        d = to_decimal(value, field_name)
        if d < 0:
            raise ValidationError(f"{field_name} must not be negative")
        return d

    def get_deductions(self, organization_id: int) -> Sequence[Deduction]:
        return self._payroll.get_deductions(int(organization_id))

    def set_deductions(self, organization_id: int, deductions: Iterable[Mapping[str, Any] | Deduction]) -> list[Deduction]:
        parsed: list[Deduction] = []
        for item in deductions:
            if isinstance(item, Deduction):
                item = {"name": item.name, "type": item.type, "value": item.value}
            if not isinstance(item, Mapping):
                raise ValidationError("Each deduction must be an object")
            name = require_non_empty(str(item.get("name") or ""), "Deduction name")
            try:
                dtype = DeductionType(item.get("type"))
            except ValueError:
                raise ValidationError(f"Unknown deduction type: {item.get('type')!r}")
            value = to_decimal(item.get("value"), "Deduction value")
            if value < 0:
                raise ValidationError("Deduction value must not be negative")
            if dtype == DeductionType.PERCENT and value > 100:
                raise ValidationError("Percent deduction cannot exceed 100")
            parsed.append(Deduction(name=name, type=dtype, value=value))

        self._payroll.replace_deductions(organization_id=int(organization_id), deductions=parsed)
        logger.info("Org %s now has %d deduction(s)", organization_id, len(parsed))
        return parsed

    @staticmethod
    def export_csv(summaries: Iterable[PayrollSummary]) -> str:
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for s in summaries:
            writer.writerow(
                {
                    "user_id": s.user_id,
                    "full_name": s.full_name,
                    "month": s.month,
                    "year": s.year,
                    "total_hours": s.total_hours,
                    "hourly_rate": "" if s.hourly_rate is None else s.hourly_rate,
                    "salary_amount": "" if s.salary_amount is None else s.salary_amount,
                    "gross_pay": "" if s.gross_pay is None else s.gross_pay,
                    "total_deductions": round2(s.total_deductions),
                    "net_pay": "" if s.net_pay is None else s.net_pay,
                }
            )
        return out.getvalue()
