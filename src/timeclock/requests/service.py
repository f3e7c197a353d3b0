from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Sequence

from ..attendance.model import compute_worked
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import inclusive_days, now_ms
from ..common.validators import require_reason
from ..core.constants import DEFAULT_LIST_LIMIT, MS_PER_MINUTE
from ..core.enums import LeaveType, RequestStatus, Role, StatusFilter
from ..core.exceptions import (
    InvalidDateRange,
    InvalidTimeRange,
    RecordNotFound,
    RequestNotFound,
    RequestNotPending,
    ValidationError,
)
from ..core.permissions import require_can_review, require_reviewer, visible_request_roles
from .model import CorrectionUpdate, Decision, LeaveRequest, TimeCorrectionRequest
from .repository import ApplyOutcome, RequestRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RejectionReasonPolicy:
    """Whether a rejection must carry a reason, per request kind.

    Defaults keep the long-standing behaviour: optional for leave,
    required for time corrections.
    """

    leave_required: bool = False
    correction_required: bool = True


@dataclass(frozen=True)
class ReviewQueue:
    leaves: Sequence[LeaveRequest]
    corrections: Sequence[TimeCorrectionRequest]


def _status_or_none(status: StatusFilter | str) -> Optional[RequestStatus]:
    try:
        f = StatusFilter(status)
    except ValueError:
        raise ValidationError(f"Unknown status filter: {status!r}")
    return None if f is StatusFilter.ALL else RequestStatus(f.value)


class RequestService:
    def __init__(
        self,
        requests: RequestRepository,
        attendance: AttendanceRepository,
        *,
        clock: Callable[[], int] = now_ms,
        rejection_policy: RejectionReasonPolicy | None = None,
    ):
        self._requests = requests
        self._attendance = attendance
        self._clock = clock
        self._policy = rejection_policy or RejectionReasonPolicy()

    # -------- Submission --------
    def submit_leave(
        self,
        *,
        user_id: int,
        user_role: Role,
        leave_type: LeaveType | str,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> int:
        if end_date < start_date:
            raise InvalidDateRange("End date must be on or after the start date")
        reason = require_reason(reason, "reason for your leave request")
        try:
            leave_type = LeaveType(leave_type)
        except ValueError:
            raise ValidationError(f"Unknown leave type: {leave_type!r}")

        days = inclusive_days(start_date, end_date)
        request_id = self._requests.create_leave(
            user_id=int(user_id),
            user_role=Role(user_role),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=reason,
            submitted_at=self._clock(),
        )
        logger.info("Leave request %s submitted by user %s (%d days)", request_id, user_id, days)
        return request_id

    def submit_time_correction(
        self,
        *,
        user_id: int,
        user_role: Role,
        attendance_id: int,
        requested_login_time: int,
        requested_logout_time: int,
        reason: str,
    ) -> int:
        if int(requested_logout_time) <= int(requested_login_time):
            raise InvalidTimeRange("Logout time must be after login time")
        reason = require_reason(reason, "reason for the time correction")

        record = self._attendance.get_by_id(int(attendance_id))
        if not record or record.user_id != int(user_id):
            raise RecordNotFound(f"Attendance record {attendance_id} not found")

        request_id = self._requests.create_time_correction(
            user_id=int(user_id),
            user_role=Role(user_role),
            record=record,
            requested_login_time=int(requested_login_time),
            requested_logout_time=int(requested_logout_time),
            reason=reason,
            submitted_at=self._clock(),
        )
        logger.info("Time correction %s submitted by user %s for record %s", request_id, user_id, attendance_id)
        return request_id

    # -------- Listing --------
    def list_requests(
        self,
        *,
        reviewer_role: Role,
        status: StatusFilter | str = StatusFilter.PENDING,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> ReviewQueue:
        roles = visible_request_roles(reviewer_role)
        if not roles:
            return ReviewQueue(leaves=[], corrections=[])

        wanted = _status_or_none(status)
        return ReviewQueue(
            leaves=self._requests.list_leaves(status=wanted, user_roles=roles, limit=limit),
            corrections=self._requests.list_time_corrections(status=wanted, user_roles=roles, limit=limit),
        )

    def list_my_requests(self, *, user_id: int, limit: int = DEFAULT_LIST_LIMIT) -> ReviewQueue:
        return ReviewQueue(
            leaves=self._requests.list_leaves(user_id=int(user_id), limit=limit),
            corrections=self._requests.list_time_corrections(user_id=int(user_id), limit=limit),
        )

    # -------- Review --------
    def _rejection_reason(self, value: Optional[str], *, required: bool) -> Optional[str]:
        if required:
            return require_reason(value, "reason for rejection")
        if value is not None and not isinstance(value, str):
            raise ValidationError("Rejection reason must be text")
        return (value or "").strip() or None

    def _pending_leave(self, request_id: int, reviewer_role: Role) -> LeaveRequest:
        require_reviewer(reviewer_role)
        req = self._requests.get_leave(request_id=int(request_id))
        if not req:
            raise RequestNotFound(f"Leave request {request_id} not found")
        require_can_review(reviewer_role, req.user_role)
        if req.status != RequestStatus.PENDING:
            raise RequestNotPending(f"Leave request {request_id} was already {req.status.value}")
        return req

    def _pending_correction(self, request_id: int, reviewer_role: Role) -> TimeCorrectionRequest:
        require_reviewer(reviewer_role)
        req = self._requests.get_time_correction(request_id=int(request_id))
        if not req:
            raise RequestNotFound(f"Time correction {request_id} not found")
        require_can_review(reviewer_role, req.user_role)
        if req.status != RequestStatus.PENDING:
            raise RequestNotPending(f"Time correction {request_id} was already {req.status.value}")
        return req

    def approve_leave(self, *, request_id: int, reviewer_role: Role) -> None:
        self._pending_leave(request_id, reviewer_role)
        decision = Decision(status=RequestStatus.APPROVED, reviewed_by=Role(reviewer_role), reviewed_at=self._clock())
        if not self._requests.decide_leave(request_id=int(request_id), decision=decision):
            raise RequestNotPending(f"Leave request {request_id} was already decided")
        logger.info("Leave request %s approved by %s", request_id, Role(reviewer_role).value)

    def reject_leave(self, *, request_id: int, reviewer_role: Role, rejection_reason: Optional[str] = None) -> None:
        self._pending_leave(request_id, reviewer_role)
        decision = Decision(
            status=RequestStatus.REJECTED,
            reviewed_by=Role(reviewer_role),
            reviewed_at=self._clock(),
            rejection_reason=self._rejection_reason(rejection_reason, required=self._policy.leave_required),
        )
        if not self._requests.decide_leave(request_id=int(request_id), decision=decision):
            raise RequestNotPending(f"Leave request {request_id} was already decided")
        logger.info("Leave request %s rejected by %s", request_id, Role(reviewer_role).value)

    def approve_time_correction(self, *, request_id: int, reviewer_role: Role) -> CorrectionUpdate:
        """Approve and apply: the record takes the requested times, its break is kept."""
        req = self._pending_correction(request_id, reviewer_role)

        record = self._attendance.get_by_id(req.attendance_id)
        if not record:
            raise RecordNotFound(f"Attendance record {req.attendance_id} no longer exists")

        now = self._clock()
        worked = compute_worked(req.requested_login_time, req.requested_logout_time, record.total_break_ms)
        if worked.clamped:
            logger.warning(
                "Correction %s leaves less time than the recorded break on record %s; worked time clamped to 0",
                request_id,
                record.attendance_id,
            )

        update = CorrectionUpdate(
            attendance_id=record.attendance_id,
            login_time=req.requested_login_time,
            logout_time=req.requested_logout_time,
            total_worked_ms=worked.worked_ms,
            worked_clamped=worked.clamped,
            applied_at=now,
        )
        decision = Decision(status=RequestStatus.APPROVED, reviewed_by=Role(reviewer_role), reviewed_at=now)

        outcome = self._requests.approve_and_apply_correction(
            request_id=int(request_id),
            decision=decision,
            update=update,
        )
        if outcome is ApplyOutcome.NOT_PENDING:
            raise RequestNotPending(f"Time correction {request_id} was already decided")
        if outcome is ApplyOutcome.RECORD_MISSING:
            raise RecordNotFound(f"Attendance record {req.attendance_id} no longer exists")

        logger.info(
            "Time correction %s approved by %s; record %s now %d ms worked",
            request_id,
            Role(reviewer_role).value,
            record.attendance_id,
            update.total_worked_ms,
        )
        return update

    def reject_time_correction(
        self,
        *,
        request_id: int,
        reviewer_role: Role,
        rejection_reason: Optional[str] = None,
    ) -> None:
        self._pending_correction(request_id, reviewer_role)
        decision = Decision(
            status=RequestStatus.REJECTED,
            reviewed_by=Role(reviewer_role),
            reviewed_at=self._clock(),
            rejection_reason=self._rejection_reason(rejection_reason, required=self._policy.correction_required),
        )
        if not self._requests.decide_time_correction(request_id=int(request_id), decision=decision):
            raise RequestNotPending(f"Time correction {request_id} was already decided")
        logger.info("Time correction %s rejected by %s", request_id, Role(reviewer_role).value)

    # -------- Consistency --------
    def find_stuck_corrections(self, *, grace_minutes: int) -> Sequence[TimeCorrectionRequest]:
        """Approved corrections that never reached their attendance record."""
        cutoff = self._clock() - int(grace_minutes) * MS_PER_MINUTE
        stuck = self._requests.list_unapplied_corrections(approved_before=cutoff)
        for req in stuck:
            logger.warning(
                "Time correction %s approved at %s but record %s is not corrected",
                req.request_id,
                req.reviewed_at,
                req.attendance_id,
            )
        return stuck
