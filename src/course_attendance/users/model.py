from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class StudentInfo:
    """Profile a student account carries; ``sid`` is the school number."""

    sid: str = ""
    name: str = ""
    department: str = ""
    class_name: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["StudentInfo"]:
        if not data:
            return None
        return cls(
            sid=str(data.get("sid") or ""),
            name=str(data.get("name") or ""),
            department=str(data.get("department") or ""),
            class_name=str(data.get("class") or ""),
            email=str(data.get("email") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "sid": self.sid,
            "name": self.name,
            "department": self.department,
            "class": self.class_name,
            "email": self.email,
        }


@dataclass(frozen=True)
class User:
    """Domain entity: a login account (admin or student)."""

    user_id: str
    username: str
    password_hash: str
    role: Role
    student_info: Optional[StudentInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_public_dict(self) -> dict:
        """Account fields safe to return to clients (no password hash)."""
        return {
            "_id": self.user_id,
            "userName": self.username,
            "role": self.role.value,
            "studentInfo": self.student_info.to_dict() if self.student_info else None,
        }


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User

    def to_dict(self) -> dict:
        return {"token": self.token, "user": self.user.to_public_dict()}
