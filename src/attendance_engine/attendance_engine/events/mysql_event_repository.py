from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from ..core.constants import ROSTER_TEAM_ROLES
from ..core.enums import RecurrenceFrequency
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Event, NewRecurringEvent, RecurringEvent
from .repository import EventRepository

_EVENT_COLUMNS = "event_id, organization_id, team_id, title, event_date, start_time, end_time, is_ad_hoc, recurring_event_id"


def _to_event(r: dict) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        organization_id=int(r["organization_id"]),
        title=r["title"],
        date=r["event_date"],
        start_time=r["start_time"],
        end_time=r["end_time"],
        recurring_event_id=int(r["recurring_event_id"]) if r.get("recurring_event_id") else None,
        team_id=int(r["team_id"]) if r.get("team_id") else None,
        is_ad_hoc=bool(r.get("is_ad_hoc")),
    )


def _ints_to_str(values: Sequence[int]) -> str:
    return ",".join(str(int(v)) for v in sorted(set(values)))


def _ints_from_str(value: Optional[str]) -> tuple[int, ...]:
    return tuple(int(p) for p in (value or "").split(",") if p.strip())


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE event_id=%s", (int(event_id),))
            r = fetchone(cur)
            if not r:
                return None
            [event] = self._with_participating_teams(cur, [_to_event(r)])
            return event

    def get_recurring(self, recurring_event_id: int) -> Optional[RecurringEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT recurring_event_id, organization_id, team_id, participating_team_ids, title,
                       frequency, days_of_week, start_date, end_date, start_time, end_time
                FROM recurring_events
                WHERE recurring_event_id=%s
                """,
                (int(recurring_event_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return RecurringEvent(
                recurring_event_id=int(r["recurring_event_id"]),
                organization_id=int(r["organization_id"]),
                title=r["title"],
                frequency=RecurrenceFrequency(r["frequency"]),
                days_of_week=_ints_from_str(r.get("days_of_week")),
                start_date=r["start_date"],
                end_date=r["end_date"],
                start_time=r["start_time"],
                end_time=r["end_time"],
                team_id=int(r["team_id"]) if r.get("team_id") else None,
                participating_team_ids=_ints_from_str(r.get("participating_team_ids")),
            )

    def create_recurring(self, *, series: NewRecurringEvent, dates: Sequence[date]) -> RecurringEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO recurring_events(
                    organization_id, team_id, participating_team_ids, title, frequency, days_of_week,
                    start_date, end_date, start_time, end_time
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(series.organization_id),
                    series.team_id,
                    _ints_to_str(series.participating_team_ids),
                    series.title,
                    series.frequency.value,
                    _ints_to_str(series.days_of_week),
                    series.start_date,
                    series.end_date,
                    series.start_time,
                    series.end_time,
                ),
            )
            recurring_event_id = int(cur.lastrowid)

            cur.executemany(
                """
                INSERT INTO events(
                    organization_id, team_id, title, event_date, start_time, end_time, recurring_event_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (
                        int(series.organization_id),
                        series.team_id,
                        series.title,
                        d,
                        series.start_time,
                        series.end_time,
                        recurring_event_id,
                    )
                    for d in dates
                ],
            )

            if series.participating_team_ids and dates:
                cur.execute("SELECT event_id FROM events WHERE recurring_event_id=%s", (recurring_event_id,))
                event_ids = [int(r["event_id"]) for r in fetchall(cur)]
                cur.executemany(
                    "INSERT INTO event_teams(event_id, team_id) VALUES(%s,%s)",
                    [(eid, int(t)) for eid in event_ids for t in sorted(set(series.participating_team_ids))],
                )

        return RecurringEvent(
            recurring_event_id=recurring_event_id,
            organization_id=series.organization_id,
            title=series.title,
            frequency=series.frequency,
            days_of_week=tuple(sorted(set(series.days_of_week))),
            start_date=series.start_date,
            end_date=series.end_date,
            start_time=series.start_time,
            end_time=series.end_time,
            team_id=series.team_id,
            participating_team_ids=tuple(sorted(set(series.participating_team_ids))),
        )

    def delete_recurring(self, *, recurring_event_id: int, future_only: bool, today: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if future_only:
                cur.execute(
                    "UPDATE events SET recurring_event_id=NULL WHERE recurring_event_id=%s AND event_date < %s",
                    (int(recurring_event_id), today),
                )

            cur.execute("SELECT event_id FROM events WHERE recurring_event_id=%s", (int(recurring_event_id),))
            event_ids = [int(r["event_id"]) for r in fetchall(cur)]

            if event_ids:
                placeholders = in_clause(event_ids)
                cur.execute(f"DELETE FROM attendance_records WHERE event_id IN ({placeholders})", tuple(event_ids))
                cur.execute(f"DELETE FROM excuse_requests WHERE event_id IN ({placeholders})", tuple(event_ids))
                cur.execute(f"DELETE FROM events WHERE event_id IN ({placeholders})", tuple(event_ids))

            cur.execute("DELETE FROM recurring_events WHERE recurring_event_id=%s", (int(recurring_event_id),))
            return len(event_ids)

    def list_between(
        self,
        *,
        start: date,
        end: date,
        organization_id: Optional[int] = None,
        include_ad_hoc: bool = False,
    ) -> Sequence[Event]:
        clauses = ["event_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if organization_id is not None:
            clauses.append("organization_id=%s")
            params.append(int(organization_id))
        if not include_ad_hoc:
            clauses.append("is_ad_hoc=0")

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE {where} ORDER BY event_date ASC, event_id ASC",
                tuple(params),
            )
            return self._with_participating_teams(cur, [_to_event(r) for r in fetchall(cur)])

    @staticmethod
    def _with_participating_teams(cur, events: list[Event]) -> list[Event]:
        if not events:
            return events
        ids = [e.event_id for e in events]
        cur.execute(
            f"SELECT event_id, team_id FROM event_teams WHERE event_id IN ({in_clause(ids)}) ORDER BY team_id ASC",
            tuple(ids),
        )
        teams: dict[int, list[int]] = {}
        for r in fetchall(cur):
            teams.setdefault(int(r["event_id"]), []).append(int(r["team_id"]))
        return [replace(e, participating_team_ids=tuple(teams[e.event_id])) if e.event_id in teams else e for e in events]

    def list_roster_user_ids(self, *, event: Event) -> Sequence[int]:
        team_ids = event.roster_team_ids
        if not team_ids:
            return []

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT user_id
                FROM team_members
                WHERE team_id IN ({in_clause(team_ids)})
                  AND role IN ({in_clause(ROSTER_TEAM_ROLES)})
                  AND joined_at <= %s
                ORDER BY user_id ASC
                """,
                (*team_ids, *ROSTER_TEAM_ROLES, event.date),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]
