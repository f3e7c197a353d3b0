from __future__ import annotations

import logging
from datetime import date, tzinfo
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import format_duration, from_ms, local_date, now_ms
from ..common.locks import KeyedLocks
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import (
    AlreadyClockedIn,
    BreakAlreadyActive,
    NoActiveBreak,
    NoActiveSession,
    RecordNotFound,
    UserNotFound,
)
from ..users.repository import UserRepository
from .model import (
    Active,
    ActiveSession,
    AttendanceRecord,
    ClockOutResult,
    Finalized,
    NewAttendanceRecord,
    SessionState,
    compute_worked,
)
from .repository import ActiveSessionRepository, AttendanceRepository

logger = logging.getLogger(__name__)

BREAK_AUTO_CLOSED_NOTICE = "You were still on break. The break was ended automatically before clock-out."
WORKED_CLAMPED_NOTICE = "Break time exceeded the session length; worked time was set to zero."


class AttendanceService:
    """Clock-in / break / clock-out state machine and worked-time accounting.

    Every mutation for a user runs under that user's lock, so two concurrent
    calls for the same user are applied one after the other. The store adds
    its own guard (one open session per user) for multi-process deployments.
    """

    def __init__(
        self,
        sessions: ActiveSessionRepository,
        attendance: AttendanceRepository,
        users: UserRepository | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        tz: tzinfo | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._users = users
        self._clock = clock
        self._tz = tz
        self._locks = locks or KeyedLocks()

    def _now(self, now: Optional[int]) -> int:
        return int(now) if now is not None else int(self._clock())

    def _require_session(self, user_id: int) -> ActiveSession:
        session = self._sessions.get(int(user_id))
        if not session:
            raise NoActiveSession("No active session. Please clock in first.")
        return session

    def clock_in(self, user_id: int, *, now: Optional[int] = None) -> ActiveSession:
        user_id = int(user_id)
        if self._users is not None and not self._users.get_by_id(user_id):
            raise UserNotFound(f"User {user_id} not found")

        with self._locks.hold(user_id):
            if self._sessions.get(user_id):
                raise AlreadyClockedIn("Already clocked in. Please clock out first.")

            session = ActiveSession(user_id=user_id, login_time=self._now(now))
            if not self._sessions.insert(session):
                raise AlreadyClockedIn("Already clocked in. Please clock out first.")

        logger.info("User %s clocked in at %s", user_id, session.login_time)
        return session

    def break_start(self, user_id: int, *, now: Optional[int] = None) -> ActiveSession:
        user_id = int(user_id)
        with self._locks.hold(user_id):
            session = self._require_session(user_id)
            if session.is_on_break:
                raise BreakAlreadyActive("Break already started")

            updated = session.with_break_started(self._now(now))
            if not self._sessions.update(updated):
                raise NoActiveSession("No active session. Please clock in first.")

        logger.info("User %s started a break", user_id)
        return updated

    def break_end(self, user_id: int, *, now: Optional[int] = None) -> ActiveSession:
        user_id = int(user_id)
        with self._locks.hold(user_id):
            session = self._require_session(user_id)
            if not session.is_on_break:
                raise NoActiveBreak("No active break to end")

            updated = session.with_break_ended(self._now(now))
            if not self._sessions.update(updated):
                raise NoActiveSession("No active session. Please clock in first.")

        logger.info("User %s ended a break (total break %d ms)", user_id, updated.accumulated_break_ms)
        return updated

    def clock_out(self, user_id: int, *, now: Optional[int] = None) -> ClockOutResult:
        user_id = int(user_id)
        with self._locks.hold(user_id):
            session = self._require_session(user_id)
            logout_time = self._now(now)

            notices: list[str] = []
            break_auto_closed = session.is_on_break
            if break_auto_closed:
                session_for_totals = session.with_break_ended(logout_time)
                notices.append(BREAK_AUTO_CLOSED_NOTICE)
            else:
                session_for_totals = session

            total_break_ms = session_for_totals.accumulated_break_ms
            worked = compute_worked(session.login_time, logout_time, total_break_ms)
            if worked.clamped:
                logger.warning(
                    "Negative worked time for user %s (login=%s logout=%s break=%s); clamped to 0",
                    user_id,
                    session.login_time,
                    logout_time,
                    total_break_ms,
                )
                notices.append(WORKED_CLAMPED_NOTICE)

            new_record = NewAttendanceRecord(
                user_id=user_id,
                work_date=local_date(session.login_time, self._tz),
                login_time=session.login_time,
                logout_time=logout_time,
                total_break_ms=total_break_ms,
                total_worked_ms=worked.worked_ms,
                worked_clamped=worked.clamped,
            )
            record = self._attendance.finalize_session(session=session, record=new_record)
            if record is None:
                raise NoActiveSession("No active session found")

        logger.info(
            "User %s clocked out: worked %s, break %s",
            user_id,
            format_duration(record.total_worked_ms),
            format_duration(record.total_break_ms),
        )
        return ClockOutResult(record=record, break_auto_closed=break_auto_closed, notices=tuple(notices))

    def get_active_session(self, user_id: int) -> Optional[ActiveSession]:
        return self._sessions.get(int(user_id))

    def list_open_sessions(self) -> Sequence[ActiveSession]:
        return self._sessions.list_open()

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise RecordNotFound(f"Attendance record {attendance_id} not found")
        return record

    def get_session_state(self, user_id: int, *, attendance_id: Optional[int] = None) -> Optional[SessionState]:
        """Active session for the user, else a finalized record (by id or latest)."""
        if attendance_id is not None:
            record = self._attendance.get_by_id(int(attendance_id))
            if record and record.user_id == int(user_id):
                return Finalized(record)
            return None

        session = self._sessions.get(int(user_id))
        if session:
            return Active(session)

        latest = self._attendance.list_for_user(int(user_id), limit=1)
        return Finalized(latest[0]) if latest else None

    def list_attendance(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if limit is not None and int(limit) <= 0:
            return []
        return self._attendance.list_for_user(int(user_id), start_date=start_date, end_date=end_date, limit=limit)

    def elapsed_ms(self, session: ActiveSession, *, now: Optional[int] = None) -> int:
        """Worked time so far for an open session (break time excluded)."""
        at = self._now(now)
        current = session.with_break_ended(at) if session.is_on_break else session
        return compute_worked(session.login_time, at, current.accumulated_break_ms).worked_ms

    def get_history_ui(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        if int(limit) <= 0:
            return []
        rows = self._attendance.list_for_user(int(user_id), limit=int(limit))
        return [self._to_ui(r) for r in rows]

    def _to_ui(self, r: AttendanceRecord) -> dict:
        return {
            "attendance_id": r.attendance_id,
            "date": r.work_date.strftime("%Y-%m-%d"),
            "login": from_ms(r.login_time, self._tz).strftime("%H:%M:%S"),
            "logout": from_ms(r.logout_time, self._tz).strftime("%H:%M:%S"),
            "total_worked_ms": r.total_worked_ms,
            "total_break_ms": r.total_break_ms,
            "total_worked": format_duration(r.total_worked_ms),
            "total_break": format_duration(r.total_break_ms),
            "corrected": r.corrected,
        }
