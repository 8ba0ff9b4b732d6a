from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.serialization import to_jsonable
from ..common.validators import require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/excuses", methods=["POST"], endpoint="submit_excuse")
    def submit_excuse():
        payload = request.get_json(silent=True) or {}
        req = container.excuse_service.submit(
            require_int(payload.get("user_id"), "user_id"),
            require_int(payload.get("event_id"), "event_id"),
            payload.get("reason") or "",
        )
        return jsonify(to_jsonable(req)), 201

    @app.route("/api/excuses/<int:request_id>/approve", methods=["POST"], endpoint="approve_excuse")
    def approve_excuse(request_id: int):
        return jsonify(to_jsonable(container.excuse_service.approve(request_id)))

    @app.route("/api/excuses/<int:request_id>/deny", methods=["POST"], endpoint="deny_excuse")
    def deny_excuse(request_id: int):
        return jsonify(to_jsonable(container.excuse_service.deny(request_id)))

    @app.route("/api/excuses/<int:request_id>", methods=["DELETE"], endpoint="cancel_excuse")
    def cancel_excuse(request_id: int):
        container.excuse_service.cancel(request_id)
        return "", 204

    @app.route("/api/organizations/<int:organization_id>/excuses/pending", methods=["GET"], endpoint="pending_excuses")
    def pending_excuses(organization_id: int):
        return jsonify(to_jsonable(list(container.excuse_service.list_pending(organization_id))))

    @app.route("/api/users/<int:user_id>/excuses", methods=["GET"], endpoint="user_excuses")
    def user_excuses(user_id: int):
        return jsonify(to_jsonable(list(container.excuse_service.list_for_user(user_id))))

    @app.route("/api/events/<int:event_id>/rsvp/<int:user_id>", methods=["PUT"], endpoint="sync_rsvp")
    def sync_rsvp(event_id: int, user_id: int):
        payload = request.get_json(silent=True) or {}
        req = container.excuse_service.sync_rsvp(
            user_id,
            event_id,
            payload.get("status"),
            previous_status=payload.get("previous_status"),
            note=payload.get("note"),
        )
        return jsonify({"excuse": to_jsonable(req)})

    @app.route("/api/events/<int:event_id>/rsvp/<int:user_id>", methods=["DELETE"], endpoint="delete_rsvp")
    def delete_rsvp(event_id: int, user_id: int):
        container.excuse_service.sync_rsvp(
            user_id,
            event_id,
            None,
            previous_status=request.args.get("previous_status"),
        )
        return "", 204
