from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_int
from ..core.constants import CATCH_UP_LOOKBACK_MINUTES
from ..container import Container
from .scheduler import AUTO_ABSENCE


def register(app: Flask, container: Container) -> None:
    @app.route("/api/organizations/<int:organization_id>/sweeps/absent", methods=["POST"], endpoint="sweep_absent")
    def sweep_absent(organization_id: int):
        """Manual trigger; looks back a week unless told otherwise.

        Goes through the scheduled job's guard, so it is a no-op while a pass is in flight.
        """
        lookback = require_int(request.args.get("lookback_minutes", CATCH_UP_LOOKBACK_MINUTES), "lookback_minutes")
        created = container.sweep_scheduler.run_now(AUTO_ABSENCE, lookback, organization_id=organization_id)
        return jsonify({"marked_absent": created or 0, "skipped": created is None})
