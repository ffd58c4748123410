from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_choice, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..students.repository import StudentRepository
from .model import AuthResult, StudentInfo, User
from .repository import UserRepository
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService:
    """Use case: register, log in and resolve bearer tokens."""

    def __init__(
        self,
        users: UserRepository,
        students: StudentRepository,
        tokens: TokenIssuer,
        *,
        email_domain: str,
    ):
        self._users = users
        self._students = students
        self._tokens = tokens
        self._email_domain = email_domain

    def register(
        self,
        *,
        username: str,
        password: str,
        role: str = Role.STUDENT.value,
        student_info: Optional[Mapping[str, Any]] = None,
    ) -> AuthResult:
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role_enum = require_choice(role or Role.STUDENT.value, Role, "Role")

        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")

        # a teacher account must not impersonate a listed student
        if role_enum == Role.ADMIN and self._students.get_by_name(username):
            raise ValidationError("This name belongs to a student and cannot register as a teacher")

        info = None
        if role_enum == Role.STUDENT:
            info = StudentInfo.from_dict(student_info)
            if info and info.sid and not info.email:
                info = StudentInfo(
                    sid=info.sid,
                    name=info.name,
                    department=info.department,
                    class_name=info.class_name,
                    email=f"{info.sid}@{self._email_domain}",
                )

        user = self._users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            role=role_enum,
            student_info=info,
            now=now_local(),
        )
        logger.info("user %s registered as %s", user.username, user.role.value)
        return AuthResult(token=self.issue_token(user), user=user)

    def login(self, username: str, password: str) -> AuthResult:
        user = self._users.get_by_username((username or "").strip())
        if not user or not password:
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # unknown hash method, e.g. a placeholder value
            ok = False
        if not ok:
            raise AuthenticationError(INVALID_CREDENTIALS)

        return AuthResult(token=self.issue_token(user), user=user)

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def check_student_name(self, name: str) -> bool:
        return self._students.get_by_name(require_non_empty(name, "Name")) is not None

    def issue_token(self, user: User) -> str:
        return self._tokens.issue(user_id=user.user_id, role=user.role.value)

    def user_from_token(self, token: Optional[str]) -> User:
        if not token:
            raise AuthenticationError("Access token required")
        payload = self._tokens.decode(token)
        user = self._users.get_by_id(str(payload.get("userId", "")))
        if not user:
            raise AuthenticationError("Invalid token")
        return user
