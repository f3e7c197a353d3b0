from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_ms
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, UserNotFound, ValidationError
from ..core.permissions import require_admin, require_reviewer
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _valid_email(value: str) -> str:
    email = require_non_empty(value, "Email").lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("Email is not valid")
    return email


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)


class UserService:
    """Use case: manage users (admin) and look them up."""

    def __init__(self, users: UserRepository, *, clock: Callable[[], int] = now_ms):
        self._users = users
        self._clock = clock

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise UserNotFound(f"User {user_id} not found")
        return user

    def list_users(self, *, current_role: Role) -> Sequence[User]:
        require_reviewer(current_role)
        return self._users.list_all()

    def create_user(self, *, current_role: Role, name: str, email: str, password: str, role: Role) -> int:
        require_admin(current_role)

        name = require_non_empty(name, "Name")
        email = _valid_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("Email already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role(role),
            created_at=self._clock(),
        )
        logger.info("Created %s account %s (id=%s)", Role(role).value, email, user_id)
        return user_id

    def update_user(
        self,
        *,
        current_role: Role,
        user_id: int,
        name: str,
        role: Optional[Role] = None,
        password: Optional[str] = None,
    ) -> User:
        """Admin edit; a missing ``role`` keeps the stored one."""
        require_admin(current_role)
        current = self.get_user(user_id)

        name = require_non_empty(name, "Name")
        password_hash = None
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            password_hash = generate_password_hash(password)

        self._users.update_user(
            user_id=int(user_id),
            name=name,
            role=Role(role) if role is not None else current.role,
            password_hash=password_hash,
        )
        return self.get_user(user_id)

    def update_profile(self, *, user_id: int, name: str, email: str) -> User:
        """A user editing their own name and email."""
        self.get_user(user_id)

        name = require_non_empty(name, "Name")
        email = _valid_email(email)
        owner = self._users.get_by_email(email)
        if owner and owner.user_id != int(user_id):
            raise ValidationError("Email already exists")

        self._users.update_profile(user_id=int(user_id), name=name, email=email)
        logger.info("User %s updated their profile", user_id)
        return self.get_user(user_id)

    def delete_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> None:
        require_admin(current_role)
        if int(current_user_id) == int(user_id):
            raise AuthorizationError("You cannot delete your own account")

        self.get_user(user_id)
        if not self._users.delete_by_id(int(user_id)):
            raise UserNotFound(f"User {user_id} not found")
        logger.info("Deleted user %s", user_id)
