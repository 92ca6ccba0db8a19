from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """User repository interface.

    Note: services depend on this interface, not on a concrete storage.
    """

    def create_user(self, email: str, password: str, name: str, role: Role = Role.USER) -> User:
        raise NotImplementedError

    def get_user_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_all_users(self) -> Sequence[User]:
        raise NotImplementedError

    def update_user(self, user_id: str, **fields: Any) -> bool:
        raise NotImplementedError

    def delete_user(self, user_id: str) -> bool:
        raise NotImplementedError
