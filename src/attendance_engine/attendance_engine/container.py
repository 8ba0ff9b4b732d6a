from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, DEFAULT_SWEEP_INTERVAL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository
from .events.service import EventService
from .excuses.mysql_excuse_repository import MySQLExcuseRepository
from .excuses.service import ExcuseService
from .notifications.handlers import subscribe_default_handlers
from .notifications.notifier import LoggingNotifier, Notifier
from .notifications.outbox import Outbox
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import PayrollService
from .sweepers.scheduler import SweepScheduler, default_jobs
from .sweepers.service import SweepService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    tz: Optional[ZoneInfo]

    events_repo: MySQLEventRepository
    attendance_repo: MySQLAttendanceRepository
    excuses_repo: MySQLExcuseRepository
    payroll_repo: MySQLPayrollRepository

    outbox: Outbox
    notifier: Notifier

    event_service: EventService
    attendance_service: AttendanceService
    excuse_service: ExcuseService
    payroll_service: PayrollService
    sweep_service: SweepService
    sweep_scheduler: SweepScheduler


def build_container(
    *,
    db_config: dict,
    tz: Optional[ZoneInfo] = None,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    events_repo = MySQLEventRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    excuses_repo = MySQLExcuseRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)

    notifier = notifier or LoggingNotifier()
    outbox = Outbox()
    subscribe_default_handlers(outbox, attendance=attendance_repo, events=events_repo, notifier=notifier)

    event_service = EventService(events_repo, tz=tz)
    attendance_service = AttendanceService(
        attendance_repo,
        events_repo,
        outbox=outbox,
        strategy_factory=AttendanceStrategyFactory(),
        grace_minutes=grace_minutes,
        tz=tz,
    )
    excuse_service = ExcuseService(excuses_repo, events_repo, outbox=outbox)
    payroll_service = PayrollService(payroll_repo)
    sweep_service = SweepService(attendance_repo, events_repo, tz=tz)
    sweep_scheduler = SweepScheduler(default_jobs(sweep_service), interval_seconds=sweep_interval_seconds)

    return Container(
        conn=conn,
        tz=tz,
        events_repo=events_repo,
        attendance_repo=attendance_repo,
        excuses_repo=excuses_repo,
        payroll_repo=payroll_repo,
        outbox=outbox,
        notifier=notifier,
        event_service=event_service,
        attendance_service=attendance_service,
        excuse_service=excuse_service,
        payroll_service=payroll_service,
        sweep_service=sweep_service,
        sweep_scheduler=sweep_scheduler,
    )
