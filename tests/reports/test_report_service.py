from __future__ import annotations

from datetime import date

import pytest

from fakes import EMPLOYEE_ID, HOUR, MINUTE, OTHER_EMPLOYEE_ID, at
from timeclock.attendance.model import NewAttendanceRecord
from timeclock.core.enums import LeaveType, Role
from timeclock.core.exceptions import AuthorizationError


def _record(repo, user_id, day, worked_hours, break_minutes=0):
    repo.add(
        NewAttendanceRecord(
            user_id=user_id,
            work_date=date(2024, 3, day),
            login_time=at(day, 8),
            logout_time=at(day, 8) + worked_hours * HOUR + break_minutes * MINUTE,
            total_break_ms=break_minutes * MINUTE,
            total_worked_ms=worked_hours * HOUR,
        )
    )


def test_attendance_summary(container, attendance_repo):
    _record(attendance_repo, EMPLOYEE_ID, 1, 8, 60)
    _record(attendance_repo, EMPLOYEE_ID, 2, 6, 30)
    _record(attendance_repo, OTHER_EMPLOYEE_ID, 1, 9)

    rows = container.report_service.attendance_summary(current_role=Role.MANAGER)

    top, second = rows[0], rows[1]
    assert top.user_id == EMPLOYEE_ID
    assert top.total_sessions == 2
    assert top.total_worked_ms == 14 * HOUR
    assert top.avg_worked_ms == 7 * HOUR
    assert top.total_break_ms == 90 * MINUTE
    assert second.user_id == OTHER_EMPLOYEE_ID
    assert len(rows) == 4
    assert rows[-1].total_sessions == 0 and rows[-1].avg_worked_ms == 0

    d = top.as_dict()
    assert d["total_worked"] == "14h 0m 0s"
    assert d["total_break"] == "1h 30m 0s"
    assert d["role"] == "employee"


def test_attendance_summary_date_window(container, attendance_repo):
    _record(attendance_repo, EMPLOYEE_ID, 1, 8)
    _record(attendance_repo, EMPLOYEE_ID, 5, 8)

    rows = container.report_service.attendance_summary(
        current_role=Role.ADMIN, start_date=date(2024, 3, 2), end_date=date(2024, 3, 31)
    )

    assert rows[0].total_sessions == 1


def test_leave_summary(container):
    requests = container.request_service

    def leave(user_id, start, end):
        return requests.submit_leave(
            user_id=user_id,
            user_role=Role.EMPLOYEE,
            leave_type=LeaveType.SICK,
            start_date=start,
            end_date=end,
            reason="flu",
        )

    a = leave(EMPLOYEE_ID, date(2024, 3, 1), date(2024, 3, 3))
    b = leave(EMPLOYEE_ID, date(2024, 3, 10), date(2024, 3, 10))
    leave(EMPLOYEE_ID, date(2024, 3, 20), date(2024, 3, 21))
    requests.approve_leave(request_id=a, reviewer_role=Role.MANAGER)
    requests.reject_leave(request_id=b, reviewer_role=Role.MANAGER)

    rows = container.report_service.leave_summary(current_role=Role.ADMIN)

    row = next(r for r in rows if r.user_id == EMPLOYEE_ID)
    assert (row.total_requests, row.approved, row.pending, row.rejected) == (3, 1, 1, 1)
    assert row.total_days_taken == 3
    assert rows[0].user_id == EMPLOYEE_ID


def test_reports_are_for_reviewers(container):
    with pytest.raises(AuthorizationError):
        container.report_service.attendance_summary(current_role=Role.EMPLOYEE)
    with pytest.raises(AuthorizationError):
        container.report_service.leave_summary(current_role=Role.EMPLOYEE)
