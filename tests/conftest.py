from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from src.attendance_engine.attendance_engine.attendance.model import AttendanceRecord
from src.attendance_engine.attendance_engine.core.constants import ROSTER_TEAM_ROLES, STAFF_ROLES
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, ExcuseStatus
from src.attendance_engine.attendance_engine.core.exceptions import ConflictError
from src.attendance_engine.attendance_engine.events.model import Event, RecurringEvent
from src.attendance_engine.attendance_engine.excuses.model import ExcuseRequest
from src.attendance_engine.attendance_engine.notifications.outbox import Outbox
from src.attendance_engine.attendance_engine.payroll.model import StaffPayProfile


class FakeEventRepo:
    def __init__(self):
        self._next_event_id = 1
        self._next_series_id = 1
        self.events: dict[int, Event] = {}
        self.series: dict[int, RecurringEvent] = {}
        self.rosters: dict[int, list[int]] = {}
        self.team_members: dict[int, list[tuple[int, date, str]]] = {}
        self.create_calls = 0

    def add_event(self, *, day: date, start_time="18:00", end_time="20:00", organization_id=1, roster=(), title=None, **kw) -> Event:
        eid = self._next_event_id
        self._next_event_id += 1
        event = Event(
            event_id=eid,
            organization_id=organization_id,
            title=title or f"Practice {eid}",
            date=day,
            start_time=start_time,
            end_time=end_time,
            **kw,
        )
        self.events[eid] = event
        self.rosters[eid] = list(roster)
        return event

    def get_by_id(self, event_id):
        return self.events.get(int(event_id))

    def get_recurring(self, recurring_event_id):
        return self.series.get(int(recurring_event_id))

    def create_recurring(self, *, series, dates):
        self.create_calls += 1
        sid = self._next_series_id
        self._next_series_id += 1
        created = RecurringEvent(
            recurring_event_id=sid,
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
        self.series[sid] = created
        for d in dates:
            self.add_event(
                day=d,
                start_time=series.start_time,
                end_time=series.end_time,
                organization_id=series.organization_id,
                title=series.title,
                recurring_event_id=sid,
                team_id=series.team_id,
                participating_team_ids=tuple(sorted(set(series.participating_team_ids))),
            )
        return created

    def delete_recurring(self, *, recurring_event_id, future_only, today):
        if future_only:
            for eid, e in list(self.events.items()):
                if e.recurring_event_id == recurring_event_id and e.date < today:
                    self.events[eid] = replace(e, recurring_event_id=None)
        doomed = [eid for eid, e in self.events.items() if e.recurring_event_id == recurring_event_id]
        for eid in doomed:
            del self.events[eid]
        self.series.pop(int(recurring_event_id), None)
        return len(doomed)

    def list_between(self, *, start, end, organization_id=None, include_ad_hoc=False):
        return [
            e
            for e in sorted(self.events.values(), key=lambda e: (e.date, e.event_id))
            if start <= e.date <= end
            and (organization_id is None or e.organization_id == organization_id)
            and (include_ad_hoc or not e.is_ad_hoc)
        ]

    def add_team_member(self, team_id, user_id, *, joined_at, role="MEMBER"):
        self.team_members.setdefault(team_id, []).append((user_id, joined_at, role))

    def list_roster_user_ids(self, *, event):
        roster = set(self.rosters.get(event.event_id, []))
        for team_id in event.roster_team_ids:
            for user_id, joined_at, role in self.team_members.get(team_id, []):
                if role in ROSTER_TEAM_ROLES and joined_at <= event.date:
                    roster.add(user_id)
        return sorted(roster)


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.records: dict[int, AttendanceRecord] = {}

    def _pair(self, user_id, event_id):
        for r in self.records.values():
            if r.user_id == int(user_id) and r.event_id == int(event_id):
                return r
        return None

    def get_by_id(self, check_in_id):
        return self.records.get(int(check_in_id))

    def get_for_user_and_event(self, user_id, event_id):
        return self._pair(user_id, event_id)

    def get_recent_for_user(self, user_id, limit):
        rows = [r for r in self.records.values() if r.user_id == int(user_id)]
        return sorted(rows, key=lambda r: r.check_in_id, reverse=True)[: int(limit)]

    def get_open_for_user(self, user_id):
        for r in sorted(self.records.values(), key=lambda r: r.check_in_id, reverse=True):
            if r.user_id == int(user_id) and r.is_open:
                return r
        return None

    def _insert(self, **fields):
        rid = self._next_id
        self._next_id += 1
        record = AttendanceRecord(check_in_id=rid, **fields)
        self.records[rid] = record
        return record

    def insert_checkin(self, *, user_id, event_id, check_in_time, status, note=None):
        existing = self._pair(user_id, event_id)
        if existing:
            return existing, False
        record = self._insert(
            user_id=int(user_id),
            event_id=int(event_id),
            status=status,
            check_in_time=check_in_time,
            note=note,
        )
        return record, True

    def complete_checkout(self, *, check_in_id, check_out_time, hours_logged):
        r = self.records.get(int(check_in_id))
        if not r or not r.is_open:
            return False
        self.records[r.check_in_id] = replace(r, check_out_time=check_out_time, hours_logged=hours_logged)
        return True

    def upsert(self, *, user_id, event_id, status, check_in_time, check_out_time, hours_logged, note=None):
        existing = self._pair(user_id, event_id)
        if existing is None:
            return self._insert(
                user_id=int(user_id),
                event_id=int(event_id),
                status=status,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
                hours_logged=hours_logged,
                note=note,
            )
        updated = replace(
            existing,
            status=status,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            hours_logged=hours_logged,
            note=note if note is not None else existing.note,
        )
        self.records[existing.check_in_id] = updated
        return updated

    def delete_for_user_and_event(self, user_id, event_id):
        r = self._pair(user_id, event_id)
        if not r:
            return False
        del self.records[r.check_in_id]
        return True

    def insert_absent_if_missing(self, *, event_id, user_ids):
        created = 0
        for uid in user_ids:
            if self._pair(uid, event_id) is None:
                self._insert(
                    user_id=int(uid),
                    event_id=int(event_id),
                    status=AttendanceStatus.ABSENT,
                    hours_logged=Decimal("0"),
                )
                created += 1
        return created

    def list_open_for_event(self, event_id):
        return [
            r
            for r in self.records.values()
            if r.event_id == int(event_id) and r.is_open and r.status.is_attended
        ]

    def count_for_user(self, user_id, *, statuses=None):
        wanted = set(statuses or [])
        return sum(
            1
            for r in self.records.values()
            if r.user_id == int(user_id) and r.approved and (not wanted or r.status in wanted)
        )


class FakeExcuseRepo:
    def __init__(self, attendance: FakeAttendanceRepo):
        self._attendance = attendance
        self._next_id = 1
        self.requests: dict[int, ExcuseRequest] = {}

    def _pair(self, user_id, event_id):
        for r in self.requests.values():
            if r.user_id == int(user_id) and r.event_id == int(event_id):
                return r
        return None

    def get_by_id(self, request_id):
        return self.requests.get(int(request_id))

    def get_for_user_and_event(self, user_id, event_id):
        return self._pair(user_id, event_id)

    def create(self, *, user_id, event_id, reason):
        if self._pair(user_id, event_id):
            raise ConflictError("duplicate")
        rid = self._next_id
        self._next_id += 1
        req = ExcuseRequest(
            request_id=rid,
            user_id=int(user_id),
            event_id=int(event_id),
            reason=reason,
            status=ExcuseStatus.PENDING,
        )
        self.requests[rid] = req
        return req

    def resubmit(self, *, request_id, reason, expected_attempt):
        req = self.requests.get(int(request_id))
        if not req or req.status != ExcuseStatus.DENIED or req.attempt_count != expected_attempt:
            return False
        self.requests[req.request_id] = replace(
            req, reason=reason, status=ExcuseStatus.PENDING, attempt_count=req.attempt_count + 1
        )
        return True

    def decide(self, *, request_id, status):
        req = self.requests.get(int(request_id))
        if not req or req.status != ExcuseStatus.PENDING:
            return None
        decided = replace(req, status=status)
        self.requests[req.request_id] = decided
        if status == ExcuseStatus.APPROVED:
            self._attendance.upsert(
                user_id=req.user_id,
                event_id=req.event_id,
                status=AttendanceStatus.EXCUSED,
                check_in_time=None,
                check_out_time=None,
                hours_logged=Decimal("0"),
            )
        return decided

    def delete(self, request_id):
        return self.requests.pop(int(request_id), None) is not None

    def upsert_pending(self, *, user_id, event_id, reason):
        existing = self._pair(user_id, event_id)
        if existing is None:
            return self.create(user_id=user_id, event_id=event_id, reason=reason)
        if existing.status != ExcuseStatus.PENDING:
            return None
        refreshed = replace(existing, reason=reason)
        self.requests[existing.request_id] = refreshed
        return refreshed

    def delete_pending(self, *, user_id, event_id):
        existing = self._pair(user_id, event_id)
        if existing is None or existing.status != ExcuseStatus.PENDING:
            return False
        del self.requests[existing.request_id]
        return True

    def list_pending(self, organization_id):
        return [r for r in self.requests.values() if r.status == ExcuseStatus.PENDING]

    def list_for_user(self, user_id):
        return [r for r in self.requests.values() if r.user_id == int(user_id)]


class FakePayrollRepo:
    def __init__(self):
        self.profiles: dict[tuple[int, int], StaffPayProfile] = {}
        self.deductions: dict[int, list] = {}
        self.roles: dict[tuple[int, int], str] = {}
        # ON_TIME/LATE records as HoursEntry; other records as (user_id, date, status).
        self.entries: list = []
        self.non_attended: list = []

    def add_member(
        self, organization_id, user_id, full_name="", *, hourly_rate=None, salary_amount=None, role="COACH"
    ):
        self.roles[(organization_id, user_id)] = role
        self.profiles[(organization_id, user_id)] = StaffPayProfile(
            user_id=user_id,
            full_name=full_name,
            hourly_rate=Decimal(str(hourly_rate)) if hourly_rate is not None else None,
            salary_amount=Decimal(str(salary_amount)) if salary_amount is not None else None,
        )

    def get_pay_profile(self, *, organization_id, user_id):
        return self.profiles.get((int(organization_id), int(user_id)))

    def list_staff_with_records(self, *, organization_id, start, end):
        org = int(organization_id)
        with_records = {e.user_id for e in self.entries if start <= e.date < end}
        with_records |= {uid for uid, day, _status in self.non_attended if start <= day < end}
        return [
            self.profiles[(org, uid)]
            for uid in sorted(with_records)
            if self.roles.get((org, uid)) in STAFF_ROLES
        ]

    def set_pay_rate(self, *, organization_id, user_id, hourly_rate, salary_amount):
        key = (int(organization_id), int(user_id))
        if key not in self.profiles:
            return False
        self.profiles[key] = replace(self.profiles[key], hourly_rate=hourly_rate, salary_amount=salary_amount)
        return True

    def get_deductions(self, organization_id):
        return list(self.deductions.get(int(organization_id), []))

    def replace_deductions(self, *, organization_id, deductions):
        self.deductions[int(organization_id)] = list(deductions)

    def list_hours_entries(self, *, organization_id, start, end, user_id=None):
        return [
            e
            for e in self.entries
            if start <= e.date < end and (user_id is None or e.user_id == int(user_id))
        ]


class RecordingNotifier:
    def __init__(self):
        self.sent: list[dict] = []

    def send(self, user_id, title, body, metadata=None):
        self.sent.append({"user_id": user_id, "title": title, "body": body, "metadata": dict(metadata or {})})


@pytest.fixture
def event_repo():
    return FakeEventRepo()


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def excuse_repo(attendance_repo):
    return FakeExcuseRepo(attendance_repo)


@pytest.fixture
def payroll_repo():
    return FakePayrollRepo()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def outbox():
    return Outbox()
