from __future__ import annotations

from typing import FrozenSet

from .enums import Role
from .exceptions import AuthorizationError

_VISIBLE_REQUEST_ROLES: dict[Role, FrozenSet[Role]] = {
    Role.EMPLOYEE: frozenset(),
    Role.MANAGER: frozenset({Role.EMPLOYEE}),
    Role.ADMIN: frozenset({Role.EMPLOYEE, Role.MANAGER}),
}


def visible_request_roles(reviewer_role: Role) -> FrozenSet[Role]:
    """Roles whose requests a reviewer may list and decide.

    Managers review employees; admins review employees and managers.
    Nobody reviews an admin's request.
    """
    return _VISIBLE_REQUEST_ROLES.get(Role(reviewer_role), frozenset())


def is_reviewer(role: Role) -> bool:
    return bool(visible_request_roles(role))


def require_reviewer(role: Role) -> None:
    if not is_reviewer(role):
        raise AuthorizationError("Manager or admin access required")


def require_admin(role: Role) -> None:
    if Role(role) != Role.ADMIN:
        raise AuthorizationError("Admin access required")


def require_can_review(reviewer_role: Role, requester_role: Role) -> None:
    if Role(requester_role) not in visible_request_roles(reviewer_role):
        raise AuthorizationError(f"A {Role(reviewer_role).value} cannot review requests from a {Role(requester_role).value}")
