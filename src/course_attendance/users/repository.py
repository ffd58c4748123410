from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import Role
from .model import StudentInfo, User


class UserRepository(Protocol):
    """Account storage port.

    Note (DIP): the auth service depends on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        student_info: Optional[StudentInfo],
        now: datetime,
    ) -> User:
        """Insert; raises ConflictError when the username is taken."""

        raise NotImplementedError
