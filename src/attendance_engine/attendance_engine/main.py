from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.datetime_utils import load_timezone
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, DEFAULT_SWEEP_INTERVAL_SECONDS
from .core.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from .database.bootstrap import apply_schema, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .events.controller import register as register_events
from .excuses.controller import register as register_excuses
from .payroll.controller import register as register_payroll
from .sweepers.controller import register as register_sweepers

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    ValidationError: 400,
    InvalidStateError: 409,
    ConflictError: 409,
}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def domain_error(e: DomainError):
        status = next((code for cls, code in ERROR_STATUS.items() if isinstance(e, cls)), 400)
        return jsonify({"error": type(e).__name__, "message": str(e)}), status

    @app.errorhandler(StorageUnavailableError)
    def storage_unavailable(e: StorageUnavailableError):
        logger.error("Storage unavailable: %s", e)
        return jsonify({"error": "StorageUnavailable", "message": "Database is unavailable"}), 503


def create_app(*, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            tz=load_timezone(getattr(settings, "ORG_TIMEZONE", "")),
            grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
            sweep_interval_seconds=float(getattr(settings, "SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS)),
        )
        container.outbox.start()
        if bool(getattr(settings, "SWEEPERS_ENABLED", False)):
            container.sweep_scheduler.start()

    app.extensions["attendance_engine"] = container

    register_error_handlers(app)
    register_events(app, container)
    register_attendance(app, container)
    register_excuses(app, container)
    register_payroll(app, container)
    register_sweepers(app, container)

    return app
