from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_optional_int, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import ActiveSession, AttendanceRecord, NewAttendanceRecord
from .repository import ActiveSessionRepository, AttendanceRepository

_RECORD_COLUMNS = """
    attendance_id, user_id, work_date, login_time, logout_time,
    total_break_ms, total_worked_ms, worked_clamped, corrected, correction_applied_at
"""


def _row_to_session(r: dict) -> ActiveSession:
    return ActiveSession(
        user_id=int(r["user_id"]),
        login_time=int(r["login_time"]),
        is_on_break=as_bool(r["is_on_break"]),
        break_start_time=as_optional_int(r.get("break_start_time")),
        accumulated_break_ms=int(r["accumulated_break_ms"] or 0),
    )


def row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        login_time=int(r["login_time"]),
        logout_time=int(r["logout_time"]),
        total_break_ms=int(r["total_break_ms"] or 0),
        total_worked_ms=int(r["total_worked_ms"] or 0),
        worked_clamped=as_bool(r.get("worked_clamped")),
        corrected=as_bool(r.get("corrected")),
        correction_applied_at=as_optional_int(r.get("correction_applied_at")),
    )


class MySQLActiveSessionRepository(ActiveSessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: int) -> Optional[ActiveSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, login_time, is_on_break, break_start_time, accumulated_break_ms
                FROM active_sessions
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def insert(self, session: ActiveSession) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO active_sessions(user_id, login_time, is_on_break, break_start_time, accumulated_break_ms)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (
                        session.user_id,
                        session.login_time,
                        int(session.is_on_break),
                        session.break_start_time,
                        session.accumulated_break_ms,
                    ),
                )
            return True
        except IntegrityError as exc:
            # user_id is the primary key: a concurrent clock-in got there first
            if is_duplicate_key(exc):
                return False
            raise

    def update(self, session: ActiveSession) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE active_sessions
                SET is_on_break=%s, break_start_time=%s, accumulated_break_ms=%s
                WHERE user_id=%s AND login_time=%s
                """,
                (
                    int(session.is_on_break),
                    session.break_start_time,
                    session.accumulated_break_ms,
                    session.user_id,
                    session.login_time,
                ),
            )
            return cur.rowcount > 0

    def list_open(self) -> Sequence[ActiveSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, login_time, is_on_break, break_start_time, accumulated_break_ms
                FROM active_sessions
                ORDER BY login_time ASC
                """
            )
            return [_row_to_session(r) for r in fetchall(cur)]


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def finalize_session(self, *, session: ActiveSession, record: NewAttendanceRecord) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM active_sessions WHERE user_id=%s AND login_time=%s",
                (session.user_id, session.login_time),
            )
            if cur.rowcount == 0:
                # Someone else (e.g. the end-of-day sweep) already closed it.
                return None

            cur.execute(
                """
                INSERT INTO attendance(
                    user_id, work_date, login_time, logout_time,
                    total_break_ms, total_worked_ms, worked_clamped
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.user_id,
                    record.work_date,
                    record.login_time,
                    record.logout_time,
                    record.total_break_ms,
                    record.total_worked_ms,
                    int(record.worked_clamped),
                ),
            )
            attendance_id = int(cur.lastrowid)

        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=record.user_id,
            work_date=record.work_date,
            login_time=record.login_time,
            logout_time=record.logout_time,
            total_break_ms=record.total_break_ms,
            total_worked_ms=record.total_worked_ms,
            worked_clamped=record.worked_clamped,
        )

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

    def list_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]

        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)

        sql = f"""
            SELECT {_RECORD_COLUMNS}
            FROM attendance
            WHERE {" AND ".join(clauses)}
            ORDER BY work_date DESC, login_time DESC
        """
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [row_to_record(r) for r in fetchall(cur)]

    def list_between(self, *, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Sequence[AttendanceRecord]:
        clauses = ["1=1"]
        params: list[object] = []

        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date DESC, user_id ASC
                """,
                tuple(params),
            )
            return [row_to_record(r) for r in fetchall(cur)]
