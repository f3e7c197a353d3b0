from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Callable, Optional

from .attendance.auto_logout import AutoLogoutSweeper
from .attendance.mysql_attendance_repository import MySQLActiveSessionRepository, MySQLAttendanceRepository
from .attendance.repository import ActiveSessionRepository, AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_ms, parse_hhmm, resolve_timezone
from .core.constants import DEFAULT_AUTO_LOGOUT_POLL_SECONDS, DEFAULT_AUTO_LOGOUT_TIME, DEFAULT_STUCK_CORRECTION_GRACE_MINUTES
from .database.connection import DatabaseConnection
from .reports.service import ReportService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.repository import RequestRepository
from .requests.service import RejectionReasonPolicy, RequestService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    sessions_repo: ActiveSessionRepository
    attendance_repo: AttendanceRepository
    requests_repo: RequestRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    request_service: RequestService
    report_service: ReportService
    auto_logout: AutoLogoutSweeper

    auto_logout_enabled: bool = False
    stuck_correction_grace_minutes: int = DEFAULT_STUCK_CORRECTION_GRACE_MINUTES
    conn: Optional[DatabaseConnection] = None


def wire(
    *,
    users_repo: UserRepository,
    sessions_repo: ActiveSessionRepository,
    attendance_repo: AttendanceRepository,
    requests_repo: RequestRepository,
    clock: Callable[[], int] = now_ms,
    tz: tzinfo | None = None,
    rejection_policy: RejectionReasonPolicy | None = None,
    auto_logout_enabled: bool = False,
    auto_logout_time: str = DEFAULT_AUTO_LOGOUT_TIME,
    auto_logout_poll_seconds: float = DEFAULT_AUTO_LOGOUT_POLL_SECONDS,
    stuck_correction_grace_minutes: int = DEFAULT_STUCK_CORRECTION_GRACE_MINUTES,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the services over any set of repositories."""
    attendance_service = AttendanceService(sessions_repo, attendance_repo, users_repo, clock=clock, tz=tz)

    return Container(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, clock=clock),
        attendance_service=attendance_service,
        request_service=RequestService(requests_repo, attendance_repo, clock=clock, rejection_policy=rejection_policy),
        report_service=ReportService(users_repo, attendance_repo, requests_repo),
        auto_logout=AutoLogoutSweeper(
            attendance_service,
            at=parse_hhmm(auto_logout_time),
            tz=tz,
            poll_seconds=auto_logout_poll_seconds,
            clock=clock,
        ),
        auto_logout_enabled=bool(auto_logout_enabled),
        stuck_correction_grace_minutes=int(stuck_correction_grace_minutes),
        conn=conn,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    """MySQL-backed container; options are read from a settings module."""
    conn = DatabaseConnection(db_config)

    def opt(name: str, default: Any) -> Any:
        return getattr(settings, name, default) if settings is not None else default

    return wire(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLActiveSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        requests_repo=MySQLRequestRepository(conn),
        tz=resolve_timezone(opt("TIMEZONE", "")),
        rejection_policy=RejectionReasonPolicy(
            leave_required=bool(opt("REQUIRE_LEAVE_REJECTION_REASON", False)),
            correction_required=bool(opt("REQUIRE_CORRECTION_REJECTION_REASON", True)),
        ),
        auto_logout_enabled=bool(opt("AUTO_LOGOUT_ENABLED", False)),
        auto_logout_time=str(opt("AUTO_LOGOUT_TIME", DEFAULT_AUTO_LOGOUT_TIME)),
        auto_logout_poll_seconds=float(opt("AUTO_LOGOUT_POLL_SECONDS", DEFAULT_AUTO_LOGOUT_POLL_SECONDS)),
        stuck_correction_grace_minutes=int(opt("STUCK_CORRECTION_GRACE_MINUTES", DEFAULT_STUCK_CORRECTION_GRACE_MINUTES)),
        conn=conn,
    )
