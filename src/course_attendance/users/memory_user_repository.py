from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Dict, Optional

from ..core.enums import Role
from ..core.exceptions import ConflictError
from .model import StudentInfo, User
from .repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(str(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        student_info: Optional[StudentInfo],
        now: datetime,
    ) -> User:
        with self._lock:
            if self.get_by_username(username):
                raise ConflictError("Username already exists")
            user = User(
                user_id=uuid.uuid4().hex,
                username=username,
                password_hash=password_hash,
                role=role,
                student_info=student_info,
                created_at=now,
                updated_at=now,
            )
            self._users[user.user_id] = user
            return user
