from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..attendance.mysql_attendance_repository import upsert_attendance
from ..core.enums import AttendanceStatus, ExcuseStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ExcuseRequest
from .repository import ExcuseRepository

_COLUMNS = "request_id, user_id, event_id, reason, status, attempt_count, created_at, updated_at"


def _to_request(r: dict) -> ExcuseRequest:
    return ExcuseRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        event_id=int(r["event_id"]),
        reason=str(r["reason"]),
        status=ExcuseStatus(r["status"]),
        attempt_count=int(r["attempt_count"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLExcuseRepository(ExcuseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _select_by_id(cur, request_id: int) -> Optional[ExcuseRequest]:
        cur.execute(f"SELECT {_COLUMNS} FROM excuse_requests WHERE request_id=%s", (int(request_id),))
        r = fetchone(cur)
        return _to_request(r) if r else None

    @staticmethod
    def _select_pair(cur, user_id: int, event_id: int) -> Optional[ExcuseRequest]:
        cur.execute(
            f"SELECT {_COLUMNS} FROM excuse_requests WHERE user_id=%s AND event_id=%s",
            (int(user_id), int(event_id)),
        )
        r = fetchone(cur)
        return _to_request(r) if r else None

    def get_by_id(self, request_id: int) -> Optional[ExcuseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_by_id(cur, request_id)

    def get_for_user_and_event(self, user_id: int, event_id: int) -> Optional[ExcuseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_pair(cur, user_id, event_id)

    def create(self, *, user_id: int, event_id: int, reason: str) -> ExcuseRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO excuse_requests(user_id, event_id, reason, status, attempt_count)
                VALUES(%s,%s,%s,'PENDING',1)
                """,
                (int(user_id), int(event_id), reason),
            )
            return self._select_by_id(cur, int(cur.lastrowid))

    def resubmit(self, *, request_id: int, reason: str, expected_attempt: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE excuse_requests
                SET reason=%s, status='PENDING', attempt_count=attempt_count + 1
                WHERE request_id=%s AND status='DENIED' AND attempt_count=%s
                """,
                (reason, int(request_id), int(expected_attempt)),
            )
            return cur.rowcount > 0

    def decide(self, *, request_id: int, status: ExcuseStatus) -> Optional[ExcuseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE excuse_requests SET status=%s WHERE request_id=%s AND status='PENDING'",
                (status.value, int(request_id)),
            )
            if cur.rowcount == 0:
                return None

            decided = self._select_by_id(cur, request_id)
            if status == ExcuseStatus.APPROVED:
                upsert_attendance(
                    cur,
                    user_id=decided.user_id,
                    event_id=decided.event_id,
                    status=AttendanceStatus.EXCUSED,
                    check_in_time=None,
                    check_out_time=None,
                    hours_logged=Decimal("0"),
                )
            return decided

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM excuse_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0

    def upsert_pending(self, *, user_id: int, event_id: int, reason: str) -> Optional[ExcuseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO excuse_requests(user_id, event_id, reason, status, attempt_count)
                VALUES(%s,%s,%s,'PENDING',1)
                ON DUPLICATE KEY UPDATE reason=IF(status='PENDING', VALUES(reason), reason)
                """,
                (int(user_id), int(event_id), reason),
            )
            stored = self._select_pair(cur, user_id, event_id)
            return stored if stored and stored.status == ExcuseStatus.PENDING else None

    def delete_pending(self, *, user_id: int, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM excuse_requests WHERE user_id=%s AND event_id=%s AND status='PENDING'",
                (int(user_id), int(event_id)),
            )
            return cur.rowcount > 0

    def list_pending(self, organization_id: int) -> Sequence[ExcuseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {", ".join("x." + c.strip() for c in _COLUMNS.split(","))}
                FROM excuse_requests x
                JOIN events e ON e.event_id = x.event_id
                WHERE e.organization_id=%s AND x.status='PENDING'
                ORDER BY x.created_at ASC, x.request_id ASC
                """,
                (int(organization_id),),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int) -> Sequence[ExcuseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM excuse_requests WHERE user_id=%s ORDER BY created_at DESC, request_id DESC",
                (int(user_id),),
            )
            return [_to_request(r) for r in fetchall(cur)]
