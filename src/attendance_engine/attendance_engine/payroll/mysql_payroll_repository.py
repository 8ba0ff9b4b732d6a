from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.constants import STAFF_ROLES
from ..core.enums import DeductionType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause
from .model import Deduction, HoursEntry, StaffPayProfile
from .repository import PayrollRepository


def _to_profile(r: dict) -> StaffPayProfile:
    return StaffPayProfile(
        user_id=int(r["user_id"]),
        full_name=str(r.get("full_name") or ""),
        hourly_rate=as_decimal(r.get("hourly_rate")),
        salary_amount=as_decimal(r.get("salary_amount")),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_pay_profile(self, *, organization_id: int, user_id: int) -> Optional[StaffPayProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT om.user_id, u.full_name, om.hourly_rate, om.salary_amount
                FROM organization_members om
                JOIN users u ON u.user_id = om.user_id
                WHERE om.organization_id=%s AND om.user_id=%s
                """,
                (int(organization_id), int(user_id)),
            )
            r = fetchone(cur)
            return _to_profile(r) if r else None

    def list_staff_with_records(self, *, organization_id: int, start: date, end: date) -> Sequence[StaffPayProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT om.user_id, u.full_name, om.hourly_rate, om.salary_amount
                FROM organization_members om
                JOIN users u ON u.user_id = om.user_id
                WHERE om.organization_id=%s
                  AND om.role IN ({in_clause(STAFF_ROLES)})
                  AND EXISTS (
                      SELECT 1
                      FROM attendance_records ar
                      JOIN events e ON e.event_id = ar.event_id
                      WHERE ar.user_id = om.user_id
                        AND e.organization_id = om.organization_id
                        AND e.event_date >= %s AND e.event_date < %s
                  )
                ORDER BY om.user_id ASC
                """,
                (int(organization_id), *STAFF_ROLES, start, end),
            )
            return [_to_profile(r) for r in fetchall(cur)]

    def set_pay_rate(
        self,
        *,
        organization_id: int,
        user_id: int,
        hourly_rate: Optional[Decimal],
        salary_amount: Optional[Decimal],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE organization_members
                SET hourly_rate=%s, salary_amount=%s
                WHERE organization_id=%s AND user_id=%s
                """,
                (hourly_rate, salary_amount, int(organization_id), int(user_id)),
            )
            return cur.rowcount > 0

    def get_deductions(self, organization_id: int) -> Sequence[Deduction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT name, type, value
                FROM payroll_deductions
                WHERE organization_id=%s
                ORDER BY position ASC, deduction_id ASC
                """,
                (int(organization_id),),
            )
            return [
                Deduction(name=str(r["name"]), type=DeductionType(r["type"]), value=as_decimal(r["value"]))
                for r in fetchall(cur)
            ]

    def replace_deductions(self, *, organization_id: int, deductions: Sequence[Deduction]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payroll_deductions WHERE organization_id=%s", (int(organization_id),))
            if deductions:
                cur.executemany(
                    """
                    INSERT INTO payroll_deductions(organization_id, name, type, value, position)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    [
                        (int(organization_id), d.name, d.type.value, d.value, position)
                        for position, d in enumerate(deductions)
                    ],
                )

    def list_hours_entries(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> Sequence[HoursEntry]:
        where = [
            "e.organization_id=%s",
            "e.event_date >= %s",
            "e.event_date < %s",
            "ar.status IN ('ON_TIME','LATE')",
        ]
        params: list[object] = [int(organization_id), start, end]
        if user_id is not None:
            where.append("ar.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.user_id, ar.event_id, e.title, e.event_date, ar.hours_logged
                FROM attendance_records ar
                JOIN events e ON e.event_id = ar.event_id
                WHERE {' AND '.join(where)}
                ORDER BY ar.user_id ASC, e.event_date ASC, ar.event_id ASC
                """,
                tuple(params),
            )
            return [
                HoursEntry(
                    user_id=int(r["user_id"]),
                    event_id=int(r["event_id"]),
                    event_title=str(r["title"]),
                    date=r["event_date"],
                    hours=as_decimal(r.get("hours_logged")) or Decimal("0"),
                )
                for r in fetchall(cur)
            ]
