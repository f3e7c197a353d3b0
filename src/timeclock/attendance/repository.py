from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import ActiveSession, AttendanceRecord, NewAttendanceRecord


class ActiveSessionRepository(Protocol):
    def get(self, user_id: int) -> Optional[ActiveSession]:
        raise NotImplementedError

    def insert(self, session: ActiveSession) -> bool:
        """Store a new session; False when the user already has one."""

        raise NotImplementedError

    def update(self, session: ActiveSession) -> bool:
        raise NotImplementedError

    def list_open(self) -> Sequence[ActiveSession]:
        raise NotImplementedError


class AttendanceRepository(Protocol):
    def finalize_session(self, *, session: ActiveSession, record: NewAttendanceRecord) -> Optional[AttendanceRecord]:
        """Insert the record and delete the session in one transaction.

        Returns None (and writes nothing) when the session is already gone.
        """

        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest first: work_date DESC, then login_time DESC."""

        raise NotImplementedError

    def list_between(self, *, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
