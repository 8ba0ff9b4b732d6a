"""In-process polling scheduler for the sweepers.

On start each job runs once with the catch-up lookback, then every
``interval_seconds`` with the periodic lookback. A job that is still running
when its next tick comes is skipped, not queued.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ..core.constants import (
    CATCH_UP_LOOKBACK_MINUTES,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    PERIODIC_LOOKBACK_MINUTES,
)
from .service import SweepService

logger = logging.getLogger(__name__)


class SingleFlight:
    """Non-blocking guard: at most one holder, later callers are turned away."""

    def __init__(self):
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()


@dataclass
class SweepJob:
    name: str
    run: Callable[..., int]
    guard: SingleFlight = field(default_factory=SingleFlight)

    def __call__(self, lookback_minutes: int, organization_id: Optional[int] = None) -> Optional[int]:
        """Run once. Returns the count from ``run``, or None if skipped or failed.

        ``organization_id`` is passed on to ``run`` only when given.
        """
        if not self.guard.try_acquire():
            logger.debug("%s already running, skipping", self.name)
            return None
        try:
            if organization_id is None:
                return self.run(int(lookback_minutes))
            return self.run(int(lookback_minutes), organization_id=int(organization_id))
        except Exception:
            logger.exception("%s failed", self.name)
            return None
        finally:
            self.guard.release()


AUTO_ABSENCE = "auto-absence"
AUTO_CHECKOUT = "auto-checkout"


def default_jobs(sweeps: SweepService) -> list[SweepJob]:
    return [
        SweepJob(
            AUTO_ABSENCE,
            lambda lookback, organization_id=None: sweeps.mark_absent_for_ended_events(
                organization_id, lookback_minutes=lookback
            ),
        ),
        SweepJob(
            AUTO_CHECKOUT,
            lambda lookback, organization_id=None: sweeps.auto_checkout_ended_events(
                organization_id, lookback_minutes=lookback
            ),
        ),
    ]


class SweepScheduler:
    def __init__(
        self,
        jobs: Sequence[SweepJob],
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        catch_up_minutes: int = CATCH_UP_LOOKBACK_MINUTES,
        lookback_minutes: int = PERIODIC_LOOKBACK_MINUTES,
    ):
        self._jobs = {job.name: job for job in jobs}
        self._interval = float(interval_seconds)
        self._catch_up_minutes = int(catch_up_minutes)
        self._lookback_minutes = int(lookback_minutes)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def jobs(self) -> list[str]:
        return list(self._jobs)

    def tick(self, lookback_minutes: Optional[int] = None) -> dict[str, Optional[int]]:
        """Run every job once (public for testing)."""
        lookback = self._lookback_minutes if lookback_minutes is None else int(lookback_minutes)
        return {name: job(lookback) for name, job in self._jobs.items()}

    def get_job(self, name: str) -> SweepJob:
        job = self._jobs.get(name)
        if job is None:
            raise KeyError(f"Unknown sweep job: {name}")
        return job

    def run_now(
        self,
        name: str,
        lookback_minutes: Optional[int] = None,
        *,
        organization_id: Optional[int] = None,
    ) -> Optional[int]:
        """Manual trigger through the job's guard; None when a run is already in flight."""
        job = self.get_job(name)
        lookback = self._catch_up_minutes if lookback_minutes is None else int(lookback_minutes)
        return job(lookback, organization_id)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="sweep-scheduler", daemon=True)
        self._thread.start()
        logger.info("Sweep scheduler started (every %ss, jobs=%s)", self._interval, ", ".join(self._jobs))

    def stop(self, timeout: float = 30.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Sweep scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        self.tick(self._catch_up_minutes)
        while not self._stop_event.wait(timeout=self._interval):
            self.tick()
