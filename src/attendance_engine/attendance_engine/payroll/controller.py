from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.serialization import to_jsonable
from ..common.validators import require_int
from ..core.constants import UNSET
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _period() -> tuple[int, int]:
        return require_int(request.args.get("month"), "month"), require_int(request.args.get("year"), "year")

    @app.route("/api/organizations/<int:organization_id>/payroll", methods=["GET"], endpoint="payroll_summary")
    def payroll_summary(organization_id: int):
        month, year = _period()
        summaries = container.payroll_service.compute_summary(organization_id, month, year)

        if request.args.get("format") == "csv":
            csv_bytes = container.payroll_service.export_csv(summaries).encode("utf-8-sig")
            filename = f"payroll_{organization_id}_{year}{month:02d}.csv"
            return app.response_class(
                csv_bytes,
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename={filename}"},
            )
        return jsonify(to_jsonable(summaries))

    @app.route(
        "/api/organizations/<int:organization_id>/payroll/<int:user_id>",
        methods=["GET"],
        endpoint="member_payroll",
    )
    def member_payroll(organization_id: int, user_id: int):
        month, year = _period()
        return jsonify(to_jsonable(container.payroll_service.member_summary(organization_id, user_id, month, year)))

    @app.route(
        "/api/organizations/<int:organization_id>/pay-rates/<int:user_id>",
        methods=["PUT"],
        endpoint="set_pay_rate",
    )
    def set_pay_rate(organization_id: int, user_id: int):
        payload = request.get_json(silent=True) or {}
        profile = container.payroll_service.set_pay_rate(
            organization_id,
            user_id,
            hourly_rate=payload.get("hourly_rate", UNSET),
            salary_amount=payload.get("salary_amount", UNSET),
        )
        return jsonify(to_jsonable(profile))

    @app.route("/api/organizations/<int:organization_id>/deductions", methods=["GET"], endpoint="get_deductions")
    def get_deductions(organization_id: int):
        return jsonify(to_jsonable(list(container.payroll_service.get_deductions(organization_id))))

    @app.route("/api/organizations/<int:organization_id>/deductions", methods=["PUT"], endpoint="set_deductions")
    def set_deductions(organization_id: int):
        payload = request.get_json(silent=True)
        items = payload.get("deductions") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise ValidationError("deductions must be a list")
        return jsonify(to_jsonable(container.payroll_service.set_deductions(organization_id, items)))
