from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.datetime_utils import format_duration, parse_iso_date
from ..common.web import current_user_id, login_required, ok
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


def _optional_int(name: str) -> Optional[int]:
    value = (request.args.get(name) or "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="checkin")
    @login_required
    def checkin():
        s = service.clock_in(current_user_id())
        return ok(s, 201, message="Clocked in")

    @app.route("/api/attendance/break-start", methods=["POST"], endpoint="break_start")
    @login_required
    def break_start():
        return ok(service.break_start(current_user_id()), message="Break started")

    @app.route("/api/attendance/break-end", methods=["POST"], endpoint="break_end")
    @login_required
    def break_end():
        return ok(service.break_end(current_user_id()), message="Break ended")

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="checkout")
    @login_required
    def checkout():
        result = service.clock_out(current_user_id())
        r = result.record
        return ok(
            r,
            message=f"Clocked out. Worked {format_duration(r.total_worked_ms)}",
            notices=list(result.notices),
            break_auto_closed=result.break_auto_closed,
        )

    @app.route("/api/attendance/active", methods=["GET"], endpoint="active_session")
    @login_required
    def active_session():
        s = service.get_active_session(current_user_id())
        if not s:
            return ok(active=False)
        elapsed = service.elapsed_ms(s)
        return ok(s, active=True, elapsed_ms=elapsed, elapsed=format_duration(elapsed))

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    @login_required
    def list_attendance():
        records = service.list_attendance(
            current_user_id(),
            start_date=_optional_date("start_date"),
            end_date=_optional_date("end_date"),
            limit=_optional_int("limit"),
        )
        return ok(list(records))

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def attendance_history():
        limit = _optional_int("limit")
        if limit is None:
            return ok(service.get_history_ui(current_user_id()))
        return ok(service.get_history_ui(current_user_id(), limit=limit))
