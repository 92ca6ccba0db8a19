from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    name: str
    email: str
    role: Role


def matches_search(term: Optional[str], *values: str) -> bool:
    """Case-insensitive substring match of ``term`` against any value."""
    if not term or not term.strip():
        return True
    needle = term.strip().lower()
    return any(needle in (v or "").lower() for v in values)


def _parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Invalid role")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_user_by_email((email or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        if not hmac.compare_digest(user.password.encode("utf-8"), (password or "").encode("utf-8")):
            raise AuthenticationError("Invalid email or password")

        logger.info("User %s logged in", user.id)
        return SessionUser(user_id=user.id, name=user.name, email=user.email, role=user.role)


class UserService:
    """Use case: manage users (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

    def list_users(self, *, search: Optional[str] = None) -> List[User]:
        return [u for u in self._users.get_all_users() if matches_search(search, u.name, u.email)]

    def get_user(self, user_id: str) -> User:
        user = self._users.get_user_by_id(user_id)
        if not user:
            raise ValidationError("User does not exist")
        return user

    def create_account(
        self,
        *,
        current_role: Role,
        name: str,
        email: str,
        password: str,
        role: Role | str = Role.USER,
    ) -> User:
        self._require_admin(current_role)
        name = require_non_empty(name, "Name")
        email = require_email(email)
        if not password:
            raise ValidationError("Password is required for new users")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        # DuplicateEmailError propagates from the repository.
        user = self._users.create_user(email, password, name, _parse_role(role))
        logger.info("Created user %s (%s)", user.id, user.role.value)
        return user

    def update_account(
        self,
        *,
        current_role: Role,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: Role | str | None = None,
        is_active: Optional[bool] = None,
    ) -> User:
        """Partial update; fields left as None are untouched, an empty password keeps the old one."""
        self._require_admin(current_role)

        updates: dict = {}
        if name is not None:
            updates["name"] = require_non_empty(name, "Name")
        if email is not None:
            updates["email"] = require_email(email)
        if password:
            updates["password"] = require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if role is not None:
            updates["role"] = _parse_role(role)
        if is_active is not None:
            updates["is_active"] = bool(is_active)

        if not self._users.update_user(user_id, **updates):
            raise ValidationError("User does not exist")
        return self.get_user(user_id)

    def delete_user(self, *, current_role: Role, current_user_id: str, user_id: str) -> None:
        self._require_admin(current_role)
        if user_id == current_user_id:
            raise ValidationError("You cannot delete your own account")

        if not self._users.delete_user(user_id):
            raise ValidationError("User does not exist")
        logger.info("Deleted user %s and their attendance records", user_id)
