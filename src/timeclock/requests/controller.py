from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_role, current_user_id, json_body, login_required, ok, reviewer_required, text_field
from ..core.exceptions import ValidationError
from ..container import Container


def _date_field(data: dict, name: str) -> date:
    try:
        return parse_iso_date(str(data.get(name) or ""))
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date")


def _int_field(data: dict, name: str) -> int:
    try:
        return int(data.get(name))
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def register(app: Flask, container: Container) -> None:
    service = container.request_service

    @app.route("/api/leaves", methods=["POST"], endpoint="submit_leave")
    @login_required
    def submit_leave():
        data = json_body()
        request_id = service.submit_leave(
            user_id=current_user_id(),
            user_role=current_role(),
            leave_type=text_field(data, "leave_type"),
            start_date=_date_field(data, "start_date"),
            end_date=_date_field(data, "end_date"),
            reason=text_field(data, "reason"),
        )
        return ok({"request_id": request_id}, 201, message="Leave request submitted")

    @app.route("/api/time-corrections", methods=["POST"], endpoint="submit_time_correction")
    @login_required
    def submit_time_correction():
        data = json_body()
        request_id = service.submit_time_correction(
            user_id=current_user_id(),
            user_role=current_role(),
            attendance_id=_int_field(data, "attendance_id"),
            requested_login_time=_int_field(data, "requested_login_time"),
            requested_logout_time=_int_field(data, "requested_logout_time"),
            reason=text_field(data, "reason"),
        )
        return ok({"request_id": request_id}, 201, message="Time correction submitted")

    @app.route("/api/requests/mine", methods=["GET"], endpoint="my_requests")
    @login_required
    def my_requests():
        queue = service.list_my_requests(user_id=current_user_id())
        return ok({"leaves": queue.leaves, "corrections": queue.corrections})

    @app.route("/api/requests", methods=["GET"], endpoint="review_queue")
    @reviewer_required
    def review_queue():
        queue = service.list_requests(reviewer_role=current_role(), status=request.args.get("status", "pending"))
        return ok({"leaves": queue.leaves, "corrections": queue.corrections})

    @app.route("/api/leaves/<int:request_id>/approve", methods=["POST"], endpoint="approve_leave")
    @reviewer_required
    def approve_leave(request_id: int):
        service.approve_leave(request_id=request_id, reviewer_role=current_role())
        return ok(message="Leave request approved")

    @app.route("/api/leaves/<int:request_id>/reject", methods=["POST"], endpoint="reject_leave")
    @reviewer_required
    def reject_leave(request_id: int):
        service.reject_leave(
            request_id=request_id,
            reviewer_role=current_role(),
            rejection_reason=text_field(json_body(), "rejection_reason", None),
        )
        return ok(message="Leave request rejected")

    @app.route("/api/time-corrections/<int:request_id>/approve", methods=["POST"], endpoint="approve_time_correction")
    @reviewer_required
    def approve_time_correction(request_id: int):
        update = service.approve_time_correction(request_id=request_id, reviewer_role=current_role())
        return ok(update, message="Time correction approved and applied")

    @app.route("/api/time-corrections/<int:request_id>/reject", methods=["POST"], endpoint="reject_time_correction")
    @reviewer_required
    def reject_time_correction(request_id: int):
        service.reject_time_correction(
            request_id=request_id,
            reviewer_role=current_role(),
            rejection_reason=text_field(json_body(), "rejection_reason", None),
        )
        return ok(message="Time correction rejected")

    @app.route("/api/time-corrections/stuck", methods=["GET"], endpoint="stuck_corrections")
    @reviewer_required
    def stuck_corrections():
        return ok(list(service.find_stuck_corrections(grace_minutes=container.stuck_correction_grace_minutes)))
