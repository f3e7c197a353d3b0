from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_role, ok, reviewer_required
from ..core.exceptions import ValidationError
from ..container import Container


def _optional_date(name: str):
    value = (request.args.get(name) or "").strip()
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports/attendance", methods=["GET"], endpoint="attendance_report")
    @reviewer_required
    def attendance_report():
        rows = container.report_service.attendance_summary(
            current_role=current_role(),
            start_date=_optional_date("start_date"),
            end_date=_optional_date("end_date"),
        )
        return ok([r.as_dict() for r in rows])

    @app.route("/api/reports/leaves", methods=["GET"], endpoint="leave_report")
    @reviewer_required
    def leave_report():
        rows = container.report_service.leave_summary(current_role=current_role())
        return ok([r.as_dict() for r in rows])
