from __future__ import annotations

import threading

import pytest

from src.attendance_engine.attendance_engine.sweepers.scheduler import SingleFlight, SweepJob, SweepScheduler


def test_single_flight_turns_away_second_holder():
    guard = SingleFlight()

    assert guard.try_acquire() is True
    assert guard.try_acquire() is False
    assert guard.busy
    guard.release()
    assert guard.try_acquire() is True


def test_overlapping_run_is_skipped_not_queued():
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow(lookback):
        calls.append(lookback)
        entered.set()
        release.wait(timeout=5)
        return 1

    job = SweepJob("slow", slow)
    worker = threading.Thread(target=job, args=(30,))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert job(30) is None
    finally:
        release.set()
        worker.join(timeout=5)

    assert calls == [30]
    assert job(30) == 1


def test_failed_run_is_logged_and_next_run_proceeds():
    outcomes = iter([RuntimeError("db down"), 3])

    def flaky(_lookback):
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    job = SweepJob("flaky", flaky)

    assert job(30) is None
    assert job(30) == 3
    assert not job.guard.busy


def test_jobs_have_independent_guards():
    a = SweepJob("a", lambda _: 1)
    b = SweepJob("b", lambda _: 2)
    a.guard.try_acquire()
    try:
        scheduler = SweepScheduler([a, b])
        assert scheduler.tick() == {"a": None, "b": 2}
    finally:
        a.guard.release()


def test_tick_uses_periodic_lookback_and_run_now_uses_catch_up():
    seen = []
    scheduler = SweepScheduler([SweepJob("absent", lambda lookback: seen.append(lookback) or 0)])

    scheduler.tick()
    scheduler.run_now("absent")
    scheduler.run_now("absent", 60)

    assert seen == [30, 10080, 60]
    with pytest.raises(KeyError):
        scheduler.run_now("missing")


def test_start_runs_catch_up_then_periodic_passes():
    seen = []
    periodic = threading.Event()

    def record(lookback):
        seen.append(lookback)
        if len(seen) >= 2:
            periodic.set()
        return 0

    scheduler = SweepScheduler([SweepJob("absent", record)], interval_seconds=0.01)
    scheduler.start()
    try:
        assert periodic.wait(timeout=5)
    finally:
        scheduler.stop(timeout=5)

    assert seen[0] == 10080
    assert seen[1] == 30
    assert not scheduler.is_running


def test_run_now_scopes_to_organization_and_respects_the_guard():
    seen = []
    job = SweepJob("absent", lambda lookback, organization_id=None: seen.append((lookback, organization_id)) or 1)
    scheduler = SweepScheduler([job])

    assert scheduler.run_now("absent", 60, organization_id=7) == 1
    assert scheduler.tick() == {"absent": 1}

    job.guard.try_acquire()
    try:
        assert scheduler.run_now("absent", organization_id=7) is None
    finally:
        job.guard.release()

    assert seen == [(60, 7), (30, None)]
