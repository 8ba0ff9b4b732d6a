from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.serialization import to_jsonable
from ..common.validators import require_int
from ..core.constants import DEFAULT_HISTORY_LIMIT, UNSET
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _timestamp(payload: dict, key: str):
        # Missing key -> default, explicit null -> clear.
        if key not in payload:
            return UNSET
        value = payload[key]
        if value is None:
            return None
        return parse_iso_datetime(str(value), container.tz)

    @app.route("/api/check-ins", methods=["POST"], endpoint="check_in")
    def check_in():
        payload = request.get_json(silent=True) or {}
        record = container.attendance_service.check_in(
            require_int(payload.get("user_id"), "user_id"),
            require_int(payload.get("event_id"), "event_id"),
        )
        return jsonify(to_jsonable(record)), 201

    @app.route("/api/check-ins/<int:check_in_id>", methods=["GET"], endpoint="get_check_in")
    def get_check_in(check_in_id: int):
        return jsonify(to_jsonable(container.attendance_service.get_record(check_in_id)))

    @app.route("/api/check-ins/<int:check_in_id>/check-out", methods=["POST"], endpoint="check_out")
    def check_out(check_in_id: int):
        return jsonify(to_jsonable(container.attendance_service.check_out(check_in_id)))

    @app.route("/api/events/<int:event_id>/attendance/<int:user_id>", methods=["PUT"], endpoint="admin_override")
    def admin_override(event_id: int, user_id: int):
        payload = request.get_json(silent=True) or {}
        record = container.attendance_service.admin_override(
            user_id=user_id,
            event_id=event_id,
            status=payload.get("status") or "",
            check_in_time=_timestamp(payload, "check_in_time"),
            check_out_time=_timestamp(payload, "check_out_time"),
            note=payload.get("note"),
        )
        return jsonify(to_jsonable(record))

    @app.route("/api/events/<int:event_id>/attendance/<int:user_id>", methods=["DELETE"], endpoint="clear_attendance")
    def clear_attendance(event_id: int, user_id: int):
        deleted = container.attendance_service.clear(user_id, event_id)
        return jsonify({"deleted": deleted})

    @app.route("/api/events/<int:event_id>/attendance/<int:user_id>/absent", methods=["POST"], endpoint="mark_absent")
    def mark_absent(event_id: int, user_id: int):
        payload = request.get_json(silent=True) or {}
        record = container.attendance_service.mark_absent(user_id, event_id, note=payload.get("note"))
        return jsonify(to_jsonable(record))

    @app.route("/api/users/<int:user_id>/check-ins", methods=["GET"], endpoint="check_in_history")
    def check_in_history(user_id: int):
        limit = require_int(request.args.get("limit", DEFAULT_HISTORY_LIMIT), "limit")
        records = container.attendance_service.history(user_id, limit=limit)
        open_record = container.attendance_service.get_open_check_in(user_id)
        return jsonify({"open": to_jsonable(open_record), "history": to_jsonable(list(records))})
