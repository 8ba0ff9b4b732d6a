from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.attendance_engine.attendance_engine.attendance.service import AttendanceService
from src.attendance_engine.attendance_engine.container import Container
from src.attendance_engine.attendance_engine.events.service import EventService
from src.attendance_engine.attendance_engine.excuses.service import ExcuseService
from src.attendance_engine.attendance_engine.main import create_app
from src.attendance_engine.attendance_engine.payroll.service import PayrollService
from src.attendance_engine.attendance_engine.sweepers.scheduler import SweepScheduler, default_jobs
from src.attendance_engine.attendance_engine.sweepers.service import SweepService


@pytest.fixture
def client(monkeypatch, event_repo, attendance_repo, excuse_repo, payroll_repo, outbox, notifier):
    monkeypatch.setenv("APP_ENV", "testing")
    sweeps = SweepService(attendance_repo, event_repo)
    container = Container(
        conn=None,
        tz=None,
        events_repo=event_repo,
        attendance_repo=attendance_repo,
        excuses_repo=excuse_repo,
        payroll_repo=payroll_repo,
        outbox=outbox,
        notifier=notifier,
        event_service=EventService(event_repo),
        attendance_service=AttendanceService(attendance_repo, event_repo, outbox=outbox),
        excuse_service=ExcuseService(excuse_repo, event_repo, outbox=outbox),
        payroll_service=PayrollService(payroll_repo),
        sweep_service=sweeps,
        sweep_scheduler=SweepScheduler(default_jobs(sweeps)),
    )
    app = create_app(container=container)
    return app.test_client()


def test_create_recurring_event_and_fetch_occurrence(client, event_repo):
    resp = client.post(
        "/api/recurring-events",
        json={
            "organization_id": 1,
            "title": "Practice",
            "frequency": "WEEKLY",
            "start_date": "2025-09-01",
            "end_date": "2025-09-30",
            "start_time": "18:00",
            "end_time": "20:00",
            "days_of_week": [1, 3],
        },
    )

    assert resp.status_code == 201
    assert resp.get_json()["frequency"] == "WEEKLY"
    event_id = min(event_repo.events)
    assert client.get(f"/api/events/{event_id}").get_json()["date"] == "2025-09-01"


def test_non_integer_team_id_is_a_bad_request(client, event_repo):
    resp = client.post(
        "/api/recurring-events",
        json={
            "organization_id": 1,
            "title": "Practice",
            "frequency": "DAILY",
            "start_date": "2025-09-01",
            "end_date": "2025-09-02",
            "start_time": "18:00",
            "end_time": "20:00",
            "team_id": "abc",
        },
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"
    assert event_repo.events == {}


def test_domain_errors_map_to_status_codes(client, event_repo):
    event = event_repo.add_event(day=date(2025, 9, 8))

    assert client.post("/api/recurring-events", json={"organization_id": 1, "frequency": "DAILY"}).status_code == 400
    assert client.post("/api/check-ins", json={"user_id": 1, "event_id": 999}).status_code == 404
    assert client.post("/api/check-ins", json={"user_id": "x", "event_id": 1}).status_code == 400

    client.post(f"/api/events/{event.event_id}/attendance/1/absent")
    resp = client.post("/api/check-ins", json={"user_id": 1, "event_id": event.event_id})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "InvalidStateError"


def test_admin_override_absent_via_put(client, event_repo):
    event = event_repo.add_event(day=date(2025, 9, 8), start_time="10:00", end_time="12:00")

    resp = client.put(
        f"/api/events/{event.event_id}/attendance/4",
        json={"status": "ABSENT", "check_in_time": "2025-09-08T10:00:00"},
    )

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["status"] == "ABSENT"
    assert body["check_in_time"] is None
    assert body["hours_logged"] == "0"


def test_excuse_flow_over_http(client, event_repo):
    event = event_repo.add_event(day=date(2025, 9, 8))

    created = client.post("/api/excuses", json={"user_id": 1, "event_id": event.event_id, "reason": "Sick"})
    request_id = created.get_json()["request_id"]
    pending = client.get("/api/organizations/1/excuses/pending").get_json()
    approved = client.post(f"/api/excuses/{request_id}/approve")

    assert created.status_code == 201
    assert [r["request_id"] for r in pending] == [request_id]
    assert approved.get_json()["status"] == "APPROVED"
    assert client.post(f"/api/excuses/{request_id}/deny").status_code == 409


def test_payroll_csv_export(client, payroll_repo):
    payroll_repo.add_member(1, 10, "Coach Kim", hourly_rate="25")

    resp = client.get("/api/organizations/1/payroll?month=9&year=2025&format=csv")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "total_hours" in resp.get_data(as_text=True)


def test_manual_absence_sweep_marks_roster_absent(client, event_repo, attendance_repo):
    event_repo.add_event(day=date.today() - timedelta(days=1), roster=(1, 2))
    event_repo.add_event(day=date.today() - timedelta(days=1), organization_id=2, roster=(3,))

    resp = client.post("/api/organizations/1/sweeps/absent")

    assert resp.status_code == 200
    assert resp.get_json() == {"marked_absent": 2, "skipped": False}
    assert sorted(r.user_id for r in attendance_repo.records.values()) == [1, 2]


def test_manual_absence_sweep_is_a_no_op_while_a_pass_is_running(client, event_repo, attendance_repo):
    event_repo.add_event(day=date.today() - timedelta(days=1), roster=(1,))
    guard = client.application.extensions["attendance_engine"].sweep_scheduler.get_job("auto-absence").guard

    assert guard.try_acquire()
    try:
        resp = client.post("/api/organizations/1/sweeps/absent")
    finally:
        guard.release()

    assert resp.get_json() == {"marked_absent": 0, "skipped": True}
    assert attendance_repo.records == {}
