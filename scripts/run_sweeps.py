"""Run one pass of both sweepers, for cron instead of the in-process scheduler.

Usage: python scripts/run_sweeps.py [--lookback-minutes N] [--organization-id ID]
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_engine.attendance_engine.common.datetime_utils import load_timezone
from src.attendance_engine.attendance_engine.container import build_container
from src.attendance_engine.attendance_engine.core.constants import CATCH_UP_LOOKBACK_MINUTES


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Mark absences and close open check-ins of ended events.")
    parser.add_argument("--lookback-minutes", type=int, default=CATCH_UP_LOOKBACK_MINUTES)
    parser.add_argument("--organization-id", type=int, default=None)
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper())

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        tz=load_timezone(getattr(settings, "ORG_TIMEZONE", "")),
    )
    sweeps = container.sweep_service
    absent = sweeps.mark_absent_for_ended_events(args.organization_id, lookback_minutes=args.lookback_minutes)
    closed = sweeps.auto_checkout_ended_events(args.organization_id, lookback_minutes=args.lookback_minutes)
    print(f"OK: marked_absent={absent} auto_checked_out={closed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
