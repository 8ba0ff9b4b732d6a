from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.serialization import to_jsonable
from ..common.validators import require_int
from ..core.exceptions import ValidationError
from ..container import Container


def _date_field(payload: dict, key: str):
    value = payload.get(key)
    if not value:
        raise ValidationError(f"{key} is required")
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be YYYY-MM-DD")


def _optional_int(payload: dict, key: str):
    value = payload.get(key)
    return None if value is None else require_int(value, key)


def _int_list(payload: dict, key: str) -> tuple[int, ...]:
    value = payload.get(key) or ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{key} must be a list")
    return tuple(require_int(v, key) for v in value)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/recurring-events", methods=["POST"], endpoint="create_recurring_event")
    def create_recurring_event():
        payload = request.get_json(silent=True) or {}
        series = container.event_service.create_recurring_event(
            organization_id=require_int(payload.get("organization_id"), "organization_id"),
            title=payload.get("title") or "",
            frequency=payload.get("frequency") or "",
            start_date=_date_field(payload, "start_date"),
            end_date=_date_field(payload, "end_date"),
            start_time=payload.get("start_time") or "",
            end_time=payload.get("end_time") or "",
            days_of_week=payload.get("days_of_week") or (),
            team_id=_optional_int(payload, "team_id"),
            participating_team_ids=_int_list(payload, "participating_team_ids"),
        )
        return jsonify(to_jsonable(series)), 201

    @app.route("/api/recurring-events/<int:recurring_event_id>", methods=["GET"], endpoint="get_recurring_event")
    def get_recurring_event(recurring_event_id: int):
        return jsonify(to_jsonable(container.event_service.get_recurring_event(recurring_event_id)))

    @app.route("/api/recurring-events/<int:recurring_event_id>", methods=["DELETE"], endpoint="delete_recurring_event")
    def delete_recurring_event(recurring_event_id: int):
        future_only = request.args.get("future_only", "").lower() in {"1", "true", "yes"}
        deleted = container.event_service.delete_recurring_event(recurring_event_id, future_only=future_only)
        return jsonify({"deleted_events": deleted})

    @app.route("/api/events/<int:event_id>", methods=["GET"], endpoint="get_event")
    def get_event(event_id: int):
        return jsonify(to_jsonable(container.event_service.get_event(event_id)))
