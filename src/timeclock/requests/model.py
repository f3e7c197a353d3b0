from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import LeaveType, RequestStatus, Role


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    user_role: Role
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str
    status: RequestStatus
    submitted_at: int
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[int] = None
    reviewed_by: Optional[Role] = None


@dataclass(frozen=True)
class TimeCorrectionRequest:
    """Request to overwrite a finalized record's login/logout times.

    ``original_*`` is a snapshot of the record at submission, kept for display.
    """

    request_id: int
    user_id: int
    user_role: Role
    attendance_id: int
    original_login_time: int
    original_logout_time: int
    original_worked_ms: int
    requested_login_time: int
    requested_logout_time: int
    reason: str
    status: RequestStatus
    submitted_at: int
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[int] = None
    reviewed_by: Optional[Role] = None


@dataclass(frozen=True)
class Decision:
    """Outcome of a review written with the pending -> decided swap."""

    status: RequestStatus
    reviewed_by: Role
    reviewed_at: int
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class CorrectionUpdate:
    """New values for the attendance row when a correction is approved."""

    attendance_id: int
    login_time: int
    logout_time: int
    total_worked_ms: int
    worked_clamped: bool
    applied_at: int
