from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import LeaveType, RequestStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_optional_int, db_cursor, fetchall, fetchone
from .model import CorrectionUpdate, Decision, LeaveRequest, TimeCorrectionRequest
from .repository import ApplyOutcome, RequestRepository

_LEAVE_COLUMNS = """
    request_id, user_id, user_role, leave_type, start_date, end_date, days, reason,
    status, rejection_reason, submitted_at, reviewed_at, reviewed_by
"""

_CORRECTION_COLUMNS = """
    r.request_id, r.user_id, r.user_role, r.attendance_id,
    r.original_login_time, r.original_logout_time, r.original_worked_ms,
    r.requested_login_time, r.requested_logout_time, r.reason,
    r.status, r.rejection_reason, r.submitted_at, r.reviewed_at, r.reviewed_by
"""


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        user_role=Role(r["user_role"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days=int(r["days"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        submitted_at=int(r["submitted_at"]),
        rejection_reason=r.get("rejection_reason"),
        reviewed_at=as_optional_int(r.get("reviewed_at")),
        reviewed_by=Role(r["reviewed_by"]) if r.get("reviewed_by") else None,
    )


def _row_to_correction(r: dict) -> TimeCorrectionRequest:
    return TimeCorrectionRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        user_role=Role(r["user_role"]),
        attendance_id=int(r["attendance_id"]),
        original_login_time=int(r["original_login_time"]),
        original_logout_time=int(r["original_logout_time"]),
        original_worked_ms=int(r["original_worked_ms"]),
        requested_login_time=int(r["requested_login_time"]),
        requested_logout_time=int(r["requested_logout_time"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        submitted_at=int(r["submitted_at"]),
        rejection_reason=r.get("rejection_reason"),
        reviewed_at=as_optional_int(r.get("reviewed_at")),
        reviewed_by=Role(r["reviewed_by"]) if r.get("reviewed_by") else None,
    )


def _filters(
    *,
    status: Optional[RequestStatus],
    user_id: Optional[int],
    user_roles: Optional[Collection[Role]],
    prefix: str = "",
) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []

    if status is not None:
        clauses.append(f"{prefix}status=%s")
        params.append(status.value)
    if user_id is not None:
        clauses.append(f"{prefix}user_id=%s")
        params.append(int(user_id))
    if user_roles is not None:
        roles = [Role(r).value for r in user_roles]
        if not roles:
            clauses.append("1=0")
        else:
            clauses.append(f"{prefix}user_role IN ({', '.join(['%s'] * len(roles))})")
            params.extend(roles)

    return " AND ".join(clauses), params


def _limit_clause(limit: Optional[int], params: list[object]) -> str:
    if limit is None:
        return ""
    params.append(int(limit))
    return "LIMIT %s"


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Leave requests --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, user_role, leave_type, start_date, end_date, days, reason, status, submitted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    user_role.value,
                    leave_type.value,
                    start_date,
                    end_date,
                    int(days),
                    reason,
                    RequestStatus.PENDING.value,
                    int(submitted_at),
                ),
            )
            return int(cur.lastrowid)

    def get_leave(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LEAVE_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def list_leaves(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        user_roles: Optional[Collection[Role]] = None,
        limit: Optional[int] = 500,
    ) -> Sequence[LeaveRequest]:
        where, params = _filters(status=status, user_id=user_id, user_roles=user_roles)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY submitted_at DESC, request_id DESC
                {_limit_clause(limit, params)}
                """,
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def decide_leave(self, *, request_id: int, decision: Decision) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, rejection_reason=%s, reviewed_at=%s, reviewed_by=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    decision.status.value,
                    decision.rejection_reason,
                    int(decision.reviewed_at),
                    decision.reviewed_by.value,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    # -------- Time corrections --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_corrections(
                    user_id, user_role, attendance_id,
                    original_login_time, original_logout_time, original_worked_ms,
                    requested_login_time, requested_logout_time, reason, status, submitted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    user_role.value,
                    record.attendance_id,
                    record.login_time,
                    record.logout_time,
                    record.total_worked_ms,
                    int(requested_login_time),
                    int(requested_logout_time),
                    reason,
                    RequestStatus.PENDING.value,
                    int(submitted_at),
                ),
            )
            return int(cur.lastrowid)

    def get_time_correction(self, *, request_id: int) -> Optional[TimeCorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CORRECTION_COLUMNS} FROM time_corrections r WHERE r.request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _row_to_correction(r) if r else None

    def list_time_corrections(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        user_roles: Optional[Collection[Role]] = None,
        limit: Optional[int] = 500,
    ) -> Sequence[TimeCorrectionRequest]:
        where, params = _filters(status=status, user_id=user_id, user_roles=user_roles, prefix="r.")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CORRECTION_COLUMNS}
                FROM time_corrections r
                WHERE {where}
                ORDER BY r.submitted_at DESC, r.request_id DESC
                {_limit_clause(limit, params)}
                """,
                tuple(params),
            )
            return [_row_to_correction(r) for r in fetchall(cur)]

    def decide_time_correction(self, *, request_id: int, decision: Decision) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_corrections
                SET status=%s, rejection_reason=%s, reviewed_at=%s, reviewed_by=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    decision.status.value,
                    decision.rejection_reason,
                    int(decision.reviewed_at),
                    decision.reviewed_by.value,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def approve_and_apply_correction(
        self,
        *,
        request_id: int,
        decision: Decision,
        update: CorrectionUpdate,
    ) -> ApplyOutcome:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendance_id FROM attendance WHERE attendance_id=%s FOR UPDATE",
                (update.attendance_id,),
            )
            if not fetchone(cur):
                return ApplyOutcome.RECORD_MISSING

            cur.execute(
                """
                UPDATE time_corrections
                SET status=%s, rejection_reason=NULL, reviewed_at=%s, reviewed_by=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    RequestStatus.APPROVED.value,
                    int(decision.reviewed_at),
                    decision.reviewed_by.value,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            if cur.rowcount == 0:
                return ApplyOutcome.NOT_PENDING

            cur.execute(
                """
                UPDATE attendance
                SET login_time=%s, logout_time=%s, total_worked_ms=%s, worked_clamped=%s,
                    corrected=1, correction_applied_at=%s
                WHERE attendance_id=%s
                """,
                (
                    update.login_time,
                    update.logout_time,
                    update.total_worked_ms,
                    int(update.worked_clamped),
                    update.applied_at,
                    update.attendance_id,
                ),
            )
            return ApplyOutcome.APPLIED

    def list_unapplied_corrections(self, *, approved_before: int) -> Sequence[TimeCorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CORRECTION_COLUMNS}
                FROM time_corrections r
                LEFT JOIN attendance a ON a.attendance_id = r.attendance_id
                WHERE r.status=%s
                  AND r.reviewed_at < %s
                  AND (a.attendance_id IS NULL
                       OR a.correction_applied_at IS NULL
                       OR a.correction_applied_at < r.reviewed_at)
                ORDER BY r.reviewed_at ASC
                """,
                (RequestStatus.APPROVED.value, int(approved_before)),
            )
            return [_row_to_correction(r) for r in fetchall(cur)]
