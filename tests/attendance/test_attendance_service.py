from __future__ import annotations

import threading
from datetime import date

import pytest

from fakes import EMPLOYEE_ID, HOUR, MINUTE, OTHER_EMPLOYEE_ID, T0, at
from timeclock.attendance.model import Active, ActiveSession, Finalized, NewAttendanceRecord
from timeclock.attendance.service import BREAK_AUTO_CLOSED_NOTICE, WORKED_CLAMPED_NOTICE
from timeclock.core.exceptions import (
    AlreadyClockedIn,
    BreakAlreadyActive,
    NoActiveBreak,
    NoActiveSession,
    RecordNotFound,
    UserNotFound,
)


@pytest.fixture
def service(container):
    return container.attendance_service


def test_clock_in_opens_session(service, sessions):
    s = service.clock_in(EMPLOYEE_ID)

    assert s == ActiveSession(user_id=EMPLOYEE_ID, login_time=T0)
    assert sessions.get(EMPLOYEE_ID) == s


def test_second_clock_in_is_rejected(service, clock):
    service.clock_in(EMPLOYEE_ID)
    clock.advance(MINUTE)

    with pytest.raises(AlreadyClockedIn):
        service.clock_in(EMPLOYEE_ID)

    assert service.get_active_session(EMPLOYEE_ID).login_time == T0


def test_clock_in_unknown_user(service):
    with pytest.raises(UserNotFound):
        service.clock_in(999)


def test_break_accumulates(service, clock):
    service.clock_in(EMPLOYEE_ID)
    clock.advance(2 * HOUR)
    started = service.break_start(EMPLOYEE_ID)
    assert started.is_on_break and started.break_start_time == T0 + 2 * HOUR

    clock.advance(30 * MINUTE)
    ended = service.break_end(EMPLOYEE_ID)
    assert not ended.is_on_break
    assert ended.break_start_time is None
    assert ended.accumulated_break_ms == 30 * MINUTE

    clock.advance(HOUR)
    service.break_start(EMPLOYEE_ID)
    clock.advance(15 * MINUTE)
    assert service.break_end(EMPLOYEE_ID).accumulated_break_ms == 45 * MINUTE


def test_break_start_twice(service):
    service.clock_in(EMPLOYEE_ID)
    service.break_start(EMPLOYEE_ID)

    with pytest.raises(BreakAlreadyActive):
        service.break_start(EMPLOYEE_ID)


def test_break_end_without_break_leaves_session_unchanged(service):
    before = service.clock_in(EMPLOYEE_ID)

    with pytest.raises(NoActiveBreak):
        service.break_end(EMPLOYEE_ID)

    assert service.get_active_session(EMPLOYEE_ID) == before


@pytest.mark.parametrize("op", ["break_start", "break_end", "clock_out"])
def test_operations_need_an_open_session(service, op):
    with pytest.raises(NoActiveSession):
        getattr(service, op)(EMPLOYEE_ID)


def test_full_day(service, sessions, clock):
    service.clock_in(EMPLOYEE_ID)
    clock.set(at(1, 12))
    service.break_start(EMPLOYEE_ID)
    clock.set(at(1, 13))
    service.break_end(EMPLOYEE_ID)
    clock.set(at(1, 17))

    result = service.clock_out(EMPLOYEE_ID)

    r = result.record
    assert (r.login_time, r.logout_time) == (at(1, 8), at(1, 17))
    assert r.total_break_ms == HOUR
    assert r.total_worked_ms == 8 * HOUR
    assert r.work_date == date(2024, 3, 1)
    assert not r.corrected and r.correction_applied_at is None
    assert result.notices == ()
    assert sessions.get(EMPLOYEE_ID) is None


def test_clock_out_closes_open_break(service, clock):
    service.clock_in(EMPLOYEE_ID)
    clock.set(at(1, 16))
    service.break_start(EMPLOYEE_ID)
    clock.set(at(1, 17))

    result = service.clock_out(EMPLOYEE_ID)

    assert result.break_auto_closed
    assert BREAK_AUTO_CLOSED_NOTICE in result.notices
    assert result.record.total_break_ms == HOUR
    assert result.record.total_worked_ms == 8 * HOUR


def test_negative_worked_time_is_clamped(service, sessions, clock):
    sessions.insert(ActiveSession(user_id=EMPLOYEE_ID, login_time=T0, accumulated_break_ms=2 * HOUR))
    clock.advance(HOUR)

    result = service.clock_out(EMPLOYEE_ID)

    assert result.record.total_worked_ms == 0
    assert result.record.worked_clamped
    assert WORKED_CLAMPED_NOTICE in result.notices


def test_clock_in_again_after_clock_out(service, clock):
    service.clock_in(EMPLOYEE_ID)
    clock.advance(HOUR)
    service.clock_out(EMPLOYEE_ID)
    clock.advance(HOUR)

    assert service.clock_in(EMPLOYEE_ID).login_time == T0 + 2 * HOUR


def test_concurrent_clock_in_creates_one_session(service):
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    guard = threading.Lock()

    def worker():
        barrier.wait()
        try:
            service.clock_in(EMPLOYEE_ID)
            result = "ok"
        except AlreadyClockedIn:
            result = "conflict"
        with guard:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 7
    assert len(service.list_open_sessions()) == 1


def test_session_state(service, clock):
    assert service.get_session_state(EMPLOYEE_ID) is None

    service.clock_in(EMPLOYEE_ID)
    assert isinstance(service.get_session_state(EMPLOYEE_ID), Active)

    clock.advance(HOUR)
    record = service.clock_out(EMPLOYEE_ID).record
    state = service.get_session_state(EMPLOYEE_ID)
    assert state == Finalized(record)

    assert service.get_session_state(EMPLOYEE_ID, attendance_id=record.attendance_id) == Finalized(record)
    assert service.get_session_state(OTHER_EMPLOYEE_ID, attendance_id=record.attendance_id) is None


def test_get_record(service, finished_record):
    assert service.get_record(finished_record.attendance_id) == finished_record
    with pytest.raises(RecordNotFound):
        service.get_record(12345)


def _add(repo, user_id, day, hour):
    return repo.add(
        NewAttendanceRecord(
            user_id=user_id,
            work_date=date(2024, 3, day),
            login_time=at(day, hour),
            logout_time=at(day, hour + 1),
            total_break_ms=0,
            total_worked_ms=HOUR,
        )
    )


def test_list_attendance_newest_first(service, attendance_repo):
    a = _add(attendance_repo, EMPLOYEE_ID, 1, 8)
    b = _add(attendance_repo, EMPLOYEE_ID, 3, 8)
    c = _add(attendance_repo, EMPLOYEE_ID, 3, 14)
    _add(attendance_repo, OTHER_EMPLOYEE_ID, 2, 8)

    assert list(service.list_attendance(EMPLOYEE_ID)) == [c, b, a]
    assert list(service.list_attendance(EMPLOYEE_ID, limit=2)) == [c, b]
    assert list(service.list_attendance(EMPLOYEE_ID, start_date=date(2024, 3, 2))) == [c, b]
    assert list(service.list_attendance(EMPLOYEE_ID, end_date=date(2024, 3, 2))) == [a]
    assert service.list_attendance(EMPLOYEE_ID, limit=0) == []


@pytest.mark.parametrize("limit", [0, -1])
def test_history_with_non_positive_limit_is_empty(service, attendance_repo, limit):
    for day in (1, 2, 3):
        _add(attendance_repo, EMPLOYEE_ID, day, 8)

    assert service.get_history_ui(EMPLOYEE_ID, limit=limit) == []
    assert len(service.get_history_ui(EMPLOYEE_ID, limit=2)) == 2


def test_history_rows_are_formatted_from_milliseconds(service, finished_record):
    rows = service.get_history_ui(EMPLOYEE_ID)

    assert rows == [
        {
            "attendance_id": finished_record.attendance_id,
            "date": "2024-03-01",
            "login": "08:00:00",
            "logout": "17:00:00",
            "total_worked_ms": 8 * HOUR,
            "total_break_ms": HOUR,
            "total_worked": "8h 0m 0s",
            "total_break": "1h 0m 0s",
            "corrected": False,
        }
    ]


def test_elapsed_excludes_running_break(service, clock):
    s = service.clock_in(EMPLOYEE_ID)
    clock.advance(2 * HOUR)
    s = service.break_start(EMPLOYEE_ID)
    clock.advance(30 * MINUTE)

    assert service.elapsed_ms(s) == 2 * HOUR


@pytest.mark.parametrize("length_min", [1, 45, 480, 1440])
@pytest.mark.parametrize("break_share", [0.0, 0.25, 1.0])
def test_worked_time_is_length_minus_break(service, sessions, clock, length_min, break_share):
    break_ms = int(length_min * MINUTE * break_share)
    sessions.insert(ActiveSession(user_id=EMPLOYEE_ID, login_time=T0, accumulated_break_ms=break_ms))
    clock.advance(length_min * MINUTE)

    record = service.clock_out(EMPLOYEE_ID).record

    assert record.total_worked_ms == length_min * MINUTE - break_ms
    assert record.total_worked_ms >= 0
    assert not record.worked_clamped
