from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "check_in_id, user_id, event_id, status, check_in_time, check_out_time, hours_logged, note, approved"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        check_in_id=int(r["check_in_id"]),
        user_id=int(r["user_id"]),
        event_id=int(r["event_id"]),
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        hours_logged=as_decimal(r.get("hours_logged")),
        note=r.get("note"),
        approved=bool(r.get("approved", 1)),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _select_pair(cur, user_id: int, event_id: int) -> Optional[AttendanceRecord]:
        cur.execute(
            f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND event_id=%s",
            (int(user_id), int(event_id)),
        )
        r = fetchone(cur)
        return _to_record(r) if r else None

    def get_by_id(self, check_in_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE check_in_id=%s", (int(check_in_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_user_and_event(self, user_id: int, event_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_pair(cur, user_id, event_id)

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {", ".join("ar." + c.strip() for c in _COLUMNS.split(","))}
                FROM attendance_records ar
                JOIN events e ON e.event_id = ar.event_id
                WHERE ar.user_id=%s
                ORDER BY e.event_date DESC, ar.check_in_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                ORDER BY check_in_time DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert_checkin(
        self,
        *,
        user_id: int,
        event_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> tuple[AttendanceRecord, bool]:
        with db_cursor(self._conn_factory) as (_, cur):
            # IGNORE: an existing row for the pair is left untouched, rowcount tells us which happened.
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(user_id, event_id, status, check_in_time, note)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(user_id), int(event_id), status.value, check_in_time, note),
            )
            created = cur.rowcount == 1
            record = self._select_pair(cur, user_id, event_id)
            return record, created

    def complete_checkout(self, *, check_in_id: int, check_out_time: datetime, hours_logged: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, hours_logged=%s
                WHERE check_in_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                """,
                (check_out_time, hours_logged, int(check_in_id)),
            )
            return cur.rowcount > 0

    def upsert(
        self,
        *,
        user_id: int,
        event_id: int,
        status: AttendanceStatus,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        hours_logged: Optional[Decimal],
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            upsert_attendance(
                cur,
                user_id=user_id,
                event_id=event_id,
                status=status,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
                hours_logged=hours_logged,
                note=note,
            )
            return self._select_pair(cur, user_id, event_id)

    def delete_for_user_and_event(self, user_id: int, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_records WHERE user_id=%s AND event_id=%s",
                (int(user_id), int(event_id)),
            )
            return cur.rowcount > 0

    def insert_absent_if_missing(self, *, event_id: int, user_ids: Iterable[int]) -> int:
        rows = [(int(uid), int(event_id), AttendanceStatus.ABSENT.value, Decimal("0")) for uid in user_ids]
        if not rows:
            return 0

        created = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for row in rows:
                cur.execute(
                    """
                    INSERT IGNORE INTO attendance_records(user_id, event_id, status, hours_logged)
                    VALUES(%s,%s,%s,%s)
                    """,
                    row,
                )
                created += 1 if cur.rowcount == 1 else 0
        return created

    def list_open_for_event(self, event_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE event_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                  AND status IN ('ON_TIME','LATE')
                ORDER BY check_in_id ASC
                """,
                (int(event_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_for_user(self, user_id: int, *, statuses: Optional[Iterable[AttendanceStatus]] = None) -> int:
        clauses = ["user_id=%s", "approved=1"]
        params: list[object] = [int(user_id)]
        status_values = [s.value for s in (statuses or [])]
        if status_values:
            clauses.append(f"status IN ({in_clause(status_values)})")
            params.extend(status_values)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_records WHERE {' AND '.join(clauses)}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0


def upsert_attendance(
    cur,
    *,
    user_id: int,
    event_id: int,
    status: AttendanceStatus,
    check_in_time: Optional[datetime],
    check_out_time: Optional[datetime],
    hours_logged: Optional[Decimal],
    note: Optional[str] = None,
) -> None:
    """Single-statement upsert; shared with the excuse approval transaction."""
    cur.execute(
        """
        INSERT INTO attendance_records(user_id, event_id, status, check_in_time, check_out_time, hours_logged, note)
        VALUES(%s,%s,%s,%s,%s,%s,%s)
        ON DUPLICATE KEY UPDATE
            status=VALUES(status),
            check_in_time=VALUES(check_in_time),
            check_out_time=VALUES(check_out_time),
            hours_logged=VALUES(hours_logged),
            note=COALESCE(VALUES(note), note)
        """,
        (int(user_id), int(event_id), status.value, check_in_time, check_out_time, hours_logged, note),
    )
