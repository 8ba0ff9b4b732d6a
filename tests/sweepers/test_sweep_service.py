from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.attendance_engine.attendance_engine.attendance.service import AttendanceService
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus
from src.attendance_engine.attendance_engine.sweepers.service import SweepService


@pytest.fixture
def sweeps(attendance_repo, event_repo):
    return SweepService(attendance_repo, event_repo)


def test_mark_absent_for_roster_members_without_record(sweeps, event_repo, attendance_repo):
    event = event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1, 2, 3])
    AttendanceService(attendance_repo, event_repo).check_in(2, event.event_id, now=datetime(2025, 9, 8, 10, 0))

    created = sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 12, 10))

    assert created == 2
    statuses = {r.user_id: r for r in attendance_repo.records.values()}
    assert statuses[1].status == AttendanceStatus.ABSENT
    assert statuses[1].hours_logged == Decimal("0")
    assert statuses[1].check_in_time is None
    assert statuses[2].status == AttendanceStatus.ON_TIME


def test_mark_absent_is_idempotent(sweeps, event_repo):
    event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1, 2])

    first = sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 12, 10))
    second = sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 12, 15))

    assert (first, second) == (2, 0)


def test_mark_absent_skips_events_outside_window(sweeps, event_repo, attendance_repo):
    event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1])  # ended long ago
    event_repo.add_event(day=date(2025, 9, 8), start_time="14:00", end_time="16:00", roster=[1])  # still running

    created = sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 15, 0))

    assert created == 0
    assert attendance_repo.records == {}


def test_mark_absent_ignores_ad_hoc_events(sweeps, event_repo):
    event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1], is_ad_hoc=True)

    assert sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 12, 5)) == 0


def test_catch_up_lookback_reaches_previous_days(sweeps, event_repo):
    event_repo.add_event(day=date(2025, 9, 3), start_time="10:00", end_time="12:00", roster=[1])

    assert sweeps.mark_absent_for_ended_events(lookback_minutes=7 * 24 * 60, now=datetime(2025, 9, 8, 9, 0)) == 1


def test_mark_absent_filters_by_organization(sweeps, event_repo):
    event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1], organization_id=1)
    event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1], organization_id=2)

    assert sweeps.mark_absent_for_ended_events(2, now=datetime(2025, 9, 8, 12, 5)) == 1


def test_one_failing_event_does_not_stop_the_sweep(sweeps, event_repo, attendance_repo, monkeypatch):
    bad = event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1])
    event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00", roster=[1])

    original = attendance_repo.insert_absent_if_missing

    def flaky(*, event_id, user_ids):
        if event_id == bad.event_id:
            raise RuntimeError("deadlock")
        return original(event_id=event_id, user_ids=user_ids)

    monkeypatch.setattr(attendance_repo, "insert_absent_if_missing", flaky)

    assert sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 12, 5)) == 1


def test_auto_checkout_closes_open_check_ins_at_event_end(sweeps, event_repo, attendance_repo):
    event = event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00")
    attendance = AttendanceService(attendance_repo, event_repo)
    early = attendance.check_in(1, event.event_id, now=datetime(2025, 9, 8, 9, 40))
    late = attendance.check_in(2, event.event_id, now=datetime(2025, 9, 8, 10, 45))

    closed = sweeps.auto_checkout_ended_events(now=datetime(2025, 9, 8, 12, 5))

    assert closed == 2
    early_done = attendance_repo.get_by_id(early.check_in_id)
    late_done = attendance_repo.get_by_id(late.check_in_id)
    assert early_done.check_out_time == datetime(2025, 9, 8, 12, 0)
    assert early_done.hours_logged == Decimal("2.00")
    assert late_done.hours_logged == Decimal("1.25")

    assert sweeps.auto_checkout_ended_events(now=datetime(2025, 9, 8, 12, 10)) == 0


def test_auto_checkout_leaves_closed_and_absent_records(sweeps, event_repo, attendance_repo):
    event = event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00")
    attendance = AttendanceService(attendance_repo, event_repo)
    done = attendance.check_in(1, event.event_id, now=datetime(2025, 9, 8, 10, 0))
    attendance.check_out(done.check_in_id, now=datetime(2025, 9, 8, 11, 0))
    attendance.mark_absent(2, event.event_id)

    assert sweeps.auto_checkout_ended_events(now=datetime(2025, 9, 8, 12, 5)) == 0
    assert attendance_repo.get_by_id(done.check_in_id).hours_logged == Decimal("1.00")


def test_mark_absent_covers_participating_teams(sweeps, event_repo, attendance_repo):
    event_repo.add_team_member(1, 1, joined_at=date(2025, 1, 1))
    event_repo.add_team_member(1, 9, joined_at=date(2025, 1, 1), role="COACH")
    event_repo.add_team_member(2, 2, joined_at=date(2025, 9, 1), role="CAPTAIN")
    event_repo.add_team_member(2, 1, joined_at=date(2025, 1, 1))
    event_repo.add_team_member(3, 3, joined_at=date(2025, 1, 1))
    event_repo.add_team_member(3, 4, joined_at=date(2025, 9, 9))  # joined after the event
    event_repo.add_event(
        day=date(2025, 9, 8),
        start_time="10:00",
        end_time="12:00",
        team_id=1,
        participating_team_ids=(2, 3),
    )

    created = sweeps.mark_absent_for_ended_events(now=datetime(2025, 9, 8, 12, 10))

    assert created == 3
    assert sorted(r.user_id for r in attendance_repo.records.values()) == [1, 2, 3]
