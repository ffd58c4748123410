from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..database.bootstrap import ENROLLMENTS
from ..database.connection import DatabaseConnection
from ..database.mongo_base import doc_id, unique_guard
from .model import Enrollment
from .repository import EnrollmentRepository


def _to_enrollment(doc: Dict[str, Any]) -> Enrollment:
    return Enrollment(
        enrollment_id=doc_id(doc),
        course_id=str(doc["courseId"]),
        student_ref=str(doc["studentRef"]),
        enrolled_at=doc["enrolledAt"],
    )


class MongoEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _col(self):
        return self._conn.db[ENROLLMENTS]

    def get(self, course_id: str, student_ref: str) -> Optional[Enrollment]:
        doc = self._col.find_one({"courseId": course_id, "studentRef": student_ref})
        return _to_enrollment(doc) if doc else None

    def list_for_course(self, course_id: str) -> Sequence[Enrollment]:
        return [_to_enrollment(d) for d in self._col.find({"courseId": course_id}).sort("enrolledAt", 1)]

    def list_for_student(self, student_ref: str) -> Sequence[Enrollment]:
        return [_to_enrollment(d) for d in self._col.find({"studentRef": student_ref})]

    def create(self, *, course_id: str, student_ref: str, enrolled_at: datetime) -> Enrollment:
        doc = {
            "courseId": course_id,
            "studentRef": student_ref,
            "enrolledAt": enrolled_at,
            "createdAt": enrolled_at,
            "updatedAt": enrolled_at,
        }
        with unique_guard("Student is already enrolled in this course"):
            inserted = self._col.insert_one(doc)
        doc["_id"] = inserted.inserted_id
        return _to_enrollment(doc)

    def delete(self, course_id: str, student_ref: str) -> bool:
        return self._col.delete_one({"courseId": course_id, "studentRef": student_ref}).deleted_count == 1
