from __future__ import annotations

import pytest

from timeclock.core.enums import Role
from timeclock.core.exceptions import AuthorizationError
from timeclock.core.permissions import is_reviewer, require_can_review, visible_request_roles


def test_visible_request_roles():
    assert visible_request_roles(Role.EMPLOYEE) == frozenset()
    assert visible_request_roles(Role.MANAGER) == {Role.EMPLOYEE}
    assert visible_request_roles(Role.ADMIN) == {Role.EMPLOYEE, Role.MANAGER}
    assert visible_request_roles("manager") == {Role.EMPLOYEE}


def test_is_reviewer():
    assert not is_reviewer(Role.EMPLOYEE)
    assert is_reviewer(Role.MANAGER)
    assert is_reviewer(Role.ADMIN)


@pytest.mark.parametrize(
    "reviewer,requester",
    [(Role.MANAGER, Role.MANAGER), (Role.MANAGER, Role.ADMIN), (Role.ADMIN, Role.ADMIN), (Role.EMPLOYEE, Role.EMPLOYEE)],
)
def test_require_can_review_denies(reviewer, requester):
    with pytest.raises(AuthorizationError):
        require_can_review(reviewer, requester)
