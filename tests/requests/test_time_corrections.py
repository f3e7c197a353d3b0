from __future__ import annotations

import threading
from datetime import date

import pytest

from fakes import EMPLOYEE_ID, HOUR, MINUTE, OTHER_EMPLOYEE_ID, T0, at
from timeclock.core.enums import RequestStatus, Role
from timeclock.core.exceptions import (
    InvalidTimeRange,
    MissingReason,
    RecordNotFound,
    RequestNotPending,
)
from timeclock.requests.model import Decision


@pytest.fixture
def service(container):
    return container.request_service


def _submit(service, record, login=None, logout=None, user_id=EMPLOYEE_ID):
    return service.submit_time_correction(
        user_id=user_id,
        user_role=Role.EMPLOYEE,
        attendance_id=record.attendance_id,
        requested_login_time=at(1, 9) if login is None else login,
        requested_logout_time=at(1, 18) if logout is None else logout,
        reason="Badge reader was down",
    )


def test_submit_snapshots_the_record(service, requests_repo, finished_record):
    rid = _submit(service, finished_record)

    req = requests_repo.get_time_correction(request_id=rid)
    assert req.status == RequestStatus.PENDING
    assert req.attendance_id == finished_record.attendance_id
    assert req.original_login_time == at(1, 8)
    assert req.original_logout_time == at(1, 17)
    assert req.original_worked_ms == 8 * HOUR
    assert (req.requested_login_time, req.requested_logout_time) == (at(1, 9), at(1, 18))


@pytest.mark.parametrize("logout", [at(1, 9), at(1, 8)])
def test_logout_must_follow_login(service, finished_record, logout):
    with pytest.raises(InvalidTimeRange):
        _submit(service, finished_record, login=at(1, 9), logout=logout)


def test_reason_is_required(service, finished_record):
    with pytest.raises(MissingReason):
        service.submit_time_correction(
            user_id=EMPLOYEE_ID,
            user_role=Role.EMPLOYEE,
            attendance_id=finished_record.attendance_id,
            requested_login_time=at(1, 9),
            requested_logout_time=at(1, 18),
            reason="",
        )


def test_record_must_exist_and_belong_to_the_user(service, finished_record):
    with pytest.raises(RecordNotFound):
        service.submit_time_correction(
            user_id=EMPLOYEE_ID,
            user_role=Role.EMPLOYEE,
            attendance_id=999,
            requested_login_time=at(1, 9),
            requested_logout_time=at(1, 18),
            reason="x",
        )
    with pytest.raises(RecordNotFound):
        _submit(service, finished_record, user_id=OTHER_EMPLOYEE_ID)


def test_approval_applies_the_correction(service, requests_repo, attendance_repo, finished_record, clock):
    rid = _submit(service, finished_record)
    clock.advance(5 * MINUTE)

    update = service.approve_time_correction(request_id=rid, reviewer_role=Role.MANAGER)

    record = attendance_repo.get_by_id(finished_record.attendance_id)
    assert (record.login_time, record.logout_time) == (at(1, 9), at(1, 18))
    assert record.total_break_ms == HOUR
    assert record.total_worked_ms == 8 * HOUR
    assert record.corrected
    assert record.correction_applied_at == T0 + 5 * MINUTE
    assert record.work_date == date(2024, 3, 1)
    assert update.total_worked_ms == record.total_worked_ms

    req = requests_repo.get_time_correction(request_id=rid)
    assert req.status == RequestStatus.APPROVED
    assert req.reviewed_by == Role.MANAGER
    assert req.reviewed_at == record.correction_applied_at


def test_correction_shorter_than_break_is_clamped(service, attendance_repo, finished_record):
    rid = _submit(service, finished_record, login=at(1, 9), logout=at(1, 9, 30))

    update = service.approve_time_correction(request_id=rid, reviewer_role=Role.ADMIN)

    record = attendance_repo.get_by_id(finished_record.attendance_id)
    assert update.worked_clamped
    assert record.total_worked_ms == 0
    assert record.worked_clamped


def test_reject_needs_a_reason(service, requests_repo, attendance_repo, finished_record):
    rid = _submit(service, finished_record)

    with pytest.raises(MissingReason):
        service.reject_time_correction(request_id=rid, reviewer_role=Role.MANAGER, rejection_reason="")
    assert requests_repo.get_time_correction(request_id=rid).status == RequestStatus.PENDING

    service.reject_time_correction(request_id=rid, reviewer_role=Role.MANAGER, rejection_reason="No evidence")

    req = requests_repo.get_time_correction(request_id=rid)
    assert req.status == RequestStatus.REJECTED
    assert req.rejection_reason == "No evidence"
    assert attendance_repo.get_by_id(finished_record.attendance_id) == finished_record


def test_rejected_correction_cannot_be_approved(service, attendance_repo, finished_record):
    rid = _submit(service, finished_record)
    service.reject_time_correction(request_id=rid, reviewer_role=Role.MANAGER, rejection_reason="No")

    with pytest.raises(RequestNotPending):
        service.approve_time_correction(request_id=rid, reviewer_role=Role.ADMIN)
    assert not attendance_repo.get_by_id(finished_record.attendance_id).corrected


def test_concurrent_approvals_apply_once(service, requests_repo, attendance_repo, finished_record, clock):
    rid = _submit(service, finished_record)
    barrier = threading.Barrier(6)
    outcomes: list[str] = []
    guard = threading.Lock()

    def worker(role):
        barrier.wait()
        try:
            service.approve_time_correction(request_id=rid, reviewer_role=role)
            result = "approved"
        except RequestNotPending:
            result = "lost"
        with guard:
            outcomes.append(result)

    roles = [Role.MANAGER, Role.ADMIN] * 3
    threads = [threading.Thread(target=worker, args=(r,)) for r in roles]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("approved") == 1
    assert outcomes.count("lost") == 5
    assert requests_repo.get_time_correction(request_id=rid).status == RequestStatus.APPROVED
    assert attendance_repo.get_by_id(finished_record.attendance_id).total_worked_ms == 8 * HOUR


def test_missing_record_keeps_request_pending(service, requests_repo, attendance_repo, finished_record):
    rid = _submit(service, finished_record)
    del attendance_repo.records[finished_record.attendance_id]

    with pytest.raises(RecordNotFound):
        service.approve_time_correction(request_id=rid, reviewer_role=Role.MANAGER)
    assert requests_repo.get_time_correction(request_id=rid).status == RequestStatus.PENDING


def test_find_stuck_corrections(service, requests_repo, finished_record, clock):
    rid = _submit(service, finished_record)
    # approved without touching the record, as after a crash between the two writes
    requests_repo.decide_time_correction(
        request_id=rid,
        decision=Decision(status=RequestStatus.APPROVED, reviewed_by=Role.MANAGER, reviewed_at=clock()),
    )
    clock.advance(20 * MINUTE)

    assert [r.request_id for r in service.find_stuck_corrections(grace_minutes=15)] == [rid]
    assert service.find_stuck_corrections(grace_minutes=30) == []


def test_applied_corrections_are_not_stuck(service, finished_record, clock):
    rid = _submit(service, finished_record)
    service.approve_time_correction(request_id=rid, reviewer_role=Role.MANAGER)
    clock.advance(HOUR)

    assert service.find_stuck_corrections(grace_minutes=15) == []
