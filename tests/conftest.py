from __future__ import annotations

from datetime import date, timezone

import pytest
from werkzeug.security import generate_password_hash

from fakes import (
    ADMIN_ID,
    EMPLOYEE_ID,
    HOUR,
    MANAGER_ID,
    OTHER_EMPLOYEE_ID,
    T0,
    FakeClock,
    InMemoryAttendance,
    InMemoryRequests,
    InMemorySessions,
    InMemoryUsers,
    at,
)
from timeclock.attendance.model import AttendanceRecord, NewAttendanceRecord
from timeclock.container import wire
from timeclock.core.enums import Role
from timeclock.users.model import User


def make_user(user_id: int, role: Role, *, password: str = "secret123") -> User:
    return User(
        user_id=user_id,
        name=f"{role.value.title()} {user_id}",
        email=f"{role.value}{user_id}@example.com",
        password_hash=generate_password_hash(password),
        role=role,
        created_at=T0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def seeded_users() -> list[User]:
    return [
        make_user(EMPLOYEE_ID, Role.EMPLOYEE),
        make_user(OTHER_EMPLOYEE_ID, Role.EMPLOYEE),
        make_user(MANAGER_ID, Role.MANAGER),
        make_user(ADMIN_ID, Role.ADMIN),
    ]


@pytest.fixture
def users(seeded_users) -> InMemoryUsers:
    return InMemoryUsers(list(seeded_users))


@pytest.fixture
def sessions() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo(sessions) -> InMemoryAttendance:
    return InMemoryAttendance(sessions)


@pytest.fixture
def requests_repo(attendance_repo) -> InMemoryRequests:
    return InMemoryRequests(attendance_repo)


@pytest.fixture
def container(users, sessions, attendance_repo, requests_repo, clock):
    return wire(
        users_repo=users,
        sessions_repo=sessions,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        clock=clock,
        tz=timezone.utc,
    )


@pytest.fixture
def finished_record(attendance_repo) -> AttendanceRecord:
    """Employee 1, 2024-03-01 08:00-17:00 with a one hour break."""
    return attendance_repo.add(
        NewAttendanceRecord(
            user_id=EMPLOYEE_ID,
            work_date=date(2024, 3, 1),
            login_time=at(1, 8),
            logout_time=at(1, 17),
            total_break_ms=HOUR,
            total_worked_ms=8 * HOUR,
        )
    )
