from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import format_duration
from ..core.enums import RequestStatus, Role
from ..core.permissions import require_reviewer
from ..requests.repository import RequestRepository
from ..users.repository import UserRepository


@dataclass(frozen=True)
class AttendanceSummaryRow:
    user_id: int
    name: str
    role: Role
    total_sessions: int
    total_worked_ms: int
    avg_worked_ms: int
    total_break_ms: int

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "role": self.role.value,
            "total_sessions": self.total_sessions,
            "total_worked_ms": self.total_worked_ms,
            "avg_worked_ms": self.avg_worked_ms,
            "total_break_ms": self.total_break_ms,
            "total_worked": format_duration(self.total_worked_ms),
            "avg_worked": format_duration(self.avg_worked_ms),
            "total_break": format_duration(self.total_break_ms),
        }


@dataclass(frozen=True)
class LeaveSummaryRow:
    user_id: int
    name: str
    role: Role
    total_requests: int
    approved: int
    pending: int
    rejected: int
    total_days_taken: int

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "role": self.role.value,
            "total_requests": self.total_requests,
            "approved": self.approved,
            "pending": self.pending,
            "rejected": self.rejected,
            "total_days_taken": self.total_days_taken,
        }


class ReportService:
    """Per-user aggregates over attendance records and leave requests.

    Every user appears in a report, including users with no rows yet.
    """

    def __init__(self, users: UserRepository, attendance: AttendanceRepository, requests: RequestRepository):
        self._users = users
        self._attendance = attendance
        self._requests = requests

    def attendance_summary(
        self,
        *,
        current_role: Role,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AttendanceSummaryRow]:
        require_reviewer(current_role)

        totals: dict[int, list[int]] = {}
        for r in self._attendance.list_between(start_date=start_date, end_date=end_date):
            t = totals.setdefault(r.user_id, [0, 0, 0])
            t[0] += 1
            t[1] += r.total_worked_ms
            t[2] += r.total_break_ms

        rows = []
        for u in self._users.list_all():
            sessions, worked, breaks = totals.get(u.user_id, [0, 0, 0])
            rows.append(
                AttendanceSummaryRow(
                    user_id=u.user_id,
                    name=u.name,
                    role=u.role,
                    total_sessions=sessions,
                    total_worked_ms=worked,
                    avg_worked_ms=worked // sessions if sessions else 0,
                    total_break_ms=breaks,
                )
            )

        rows.sort(key=lambda x: x.total_worked_ms, reverse=True)
        return rows

    def leave_summary(self, *, current_role: Role) -> list[LeaveSummaryRow]:
        require_reviewer(current_role)

        counts: dict[int, dict[str, int]] = {}
        for lr in self._requests.list_leaves(limit=None):
            c = counts.setdefault(lr.user_id, {"total": 0, "approved": 0, "pending": 0, "rejected": 0, "days": 0})
            c["total"] += 1
            c[lr.status.value] += 1
            if lr.status == RequestStatus.APPROVED:
                c["days"] += lr.days

        rows = []
        for u in self._users.list_all():
            c = counts.get(u.user_id, {"total": 0, "approved": 0, "pending": 0, "rejected": 0, "days": 0})
            rows.append(
                LeaveSummaryRow(
                    user_id=u.user_id,
                    name=u.name,
                    role=u.role,
                    total_requests=c["total"],
                    approved=c["approved"],
                    pending=c["pending"],
                    rejected=c["rejected"],
                    total_days_taken=c["days"],
                )
            )

        rows.sort(key=lambda x: x.total_requests, reverse=True)
        return rows
