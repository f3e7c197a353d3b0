from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Collection, Optional, Protocol, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import LeaveType, RequestStatus, Role
from .model import CorrectionUpdate, Decision, LeaveRequest, TimeCorrectionRequest


class ApplyOutcome(str, Enum):
    APPLIED = "applied"
    NOT_PENDING = "not_pending"
    RECORD_MISSING = "record_missing"


class RequestRepository(Protocol):
    # Leave requests
    def create_leave(
        self,
        *,
        user_id: int,
        user_role: Role,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days: int,
        reason: str,
        submitted_at: int,
    ) -> int:
        raise NotImplementedError

    def get_leave(self, *, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        user_roles: Optional[Collection[Role]] = None,
        limit: Optional[int] = 500,
    ) -> Sequence[LeaveRequest]:
        """Newest first."""

        raise NotImplementedError

    def decide_leave(self, *, request_id: int, decision: Decision) -> bool:
        """Write the decision only while the request is still pending."""

        raise NotImplementedError

    # Time corrections
    def create_time_correction(
        self,
        *,
        user_id: int,
        user_role: Role,
        record: AttendanceRecord,
        requested_login_time: int,
        requested_logout_time: int,
        reason: str,
        submitted_at: int,
    ) -> int:
        raise NotImplementedError

    def get_time_correction(self, *, request_id: int) -> Optional[TimeCorrectionRequest]:
        raise NotImplementedError

    def list_time_corrections(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        user_roles: Optional[Collection[Role]] = None,
        limit: Optional[int] = 500,
    ) -> Sequence[TimeCorrectionRequest]:
        raise NotImplementedError

    def decide_time_correction(self, *, request_id: int, decision: Decision) -> bool:
        raise NotImplementedError

    def approve_and_apply_correction(
        self,
        *,
        request_id: int,
        decision: Decision,
        update: CorrectionUpdate,
    ) -> ApplyOutcome:
        """Approve the request and overwrite the attendance row atomically.

        Either both writes happen or neither does.
        """

        raise NotImplementedError

    def list_unapplied_corrections(self, *, approved_before: int) -> Sequence[TimeCorrectionRequest]:
        """Approved corrections whose attendance row is not marked corrected."""

        raise NotImplementedError
