from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Domain entity: a student directory record.

    ``id`` is the storage key; ``student_id`` is the school-issued number
    used on attendance rosters.
    """

    id: str
    student_id: str
    name: str
    department: str = ""
    class_name: str = ""
    email: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "studentId": self.student_id,
            "name": self.name,
            "department": self.department,
            "class": self.class_name,
            "email": self.email or "",
        }
