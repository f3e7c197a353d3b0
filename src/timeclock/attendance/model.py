from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Union


@dataclass(frozen=True)
class ActiveSession:
    """In-progress clock state; at most one per user.

    ``is_on_break`` holds exactly when ``break_start_time`` is set.
    """

    user_id: int
    login_time: int
    is_on_break: bool = False
    break_start_time: Optional[int] = None
    accumulated_break_ms: int = 0

    def __post_init__(self) -> None:
        if self.is_on_break != (self.break_start_time is not None):
            raise ValueError("is_on_break must match break_start_time")
        if self.accumulated_break_ms < 0:
            raise ValueError("accumulated_break_ms must be non-negative")

    def with_break_started(self, at: int) -> "ActiveSession":
        return replace(self, is_on_break=True, break_start_time=int(at))

    def with_break_ended(self, at: int) -> "ActiveSession":
        delta = max(int(at) - int(self.break_start_time or at), 0)
        return replace(
            self,
            is_on_break=False,
            break_start_time=None,
            accumulated_break_ms=self.accumulated_break_ms + delta,
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one finalized work session (created at clock-out)."""

    attendance_id: int
    user_id: int
    work_date: date
    login_time: int
    logout_time: int
    total_break_ms: int
    total_worked_ms: int
    worked_clamped: bool = False
    corrected: bool = False
    correction_applied_at: Optional[int] = None


@dataclass(frozen=True)
class NewAttendanceRecord:
    """Values computed at clock-out, before the store assigns an id."""

    user_id: int
    work_date: date
    login_time: int
    logout_time: int
    total_break_ms: int
    total_worked_ms: int
    worked_clamped: bool = False


@dataclass(frozen=True)
class Active:
    session: ActiveSession


@dataclass(frozen=True)
class Finalized:
    record: AttendanceRecord


SessionState = Union[Active, Finalized]


@dataclass(frozen=True)
class ClockOutResult:
    record: AttendanceRecord
    break_auto_closed: bool = False
    notices: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class WorkedDuration:
    worked_ms: int
    clamped: bool


def compute_worked(login_time: int, logout_time: int, break_ms: int) -> WorkedDuration:
    """(logout - login) - break, floored at zero and flagged when floored."""
    worked = (int(logout_time) - int(login_time)) - int(break_ms)
    if worked < 0:
        return WorkedDuration(worked_ms=0, clamped=True)
    return WorkedDuration(worked_ms=worked, clamped=False)
