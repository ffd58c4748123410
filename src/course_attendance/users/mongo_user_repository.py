from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import Role
from ..database.bootstrap import USERS
from ..database.connection import DatabaseConnection
from ..database.mongo_base import doc_id, to_object_id, unique_guard
from .model import StudentInfo, User
from .repository import UserRepository


def _to_user(doc: Dict[str, Any]) -> User:
    return User(
        user_id=doc_id(doc),
        username=doc["userName"],
        password_hash=doc.get("password") or "",
        role=Role(doc.get("role", Role.STUDENT.value)),
        student_info=StudentInfo.from_dict(doc.get("studentInfo")),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoUserRepository(UserRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _col(self):
        return self._conn.db[USERS]

    def get_by_id(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return _to_user(doc) if doc else None

    def get_by_username(self, username: str) -> Optional[User]:
        doc = self._col.find_one({"userName": username})
        return _to_user(doc) if doc else None

    def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        student_info: Optional[StudentInfo],
        now: datetime,
    ) -> User:
        doc: Dict[str, Any] = {
            "userName": username,
            "password": password_hash,
            "role": role.value,
            "createdAt": now,
            "updatedAt": now,
        }
        if student_info is not None:
            doc["studentInfo"] = student_info.to_dict()

        with unique_guard("Username already exists"):
            inserted = self._col.insert_one(doc)
        doc["_id"] = inserted.inserted_id
        return _to_user(doc)
