from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from ..database.bootstrap import STUDENTS
from ..database.connection import DatabaseConnection
from ..database.mongo_base import doc_id, to_object_id, unique_guard
from .model import Student
from .repository import StudentRepository


def _to_student(doc: Dict[str, Any]) -> Student:
    return Student(
        id=doc_id(doc),
        student_id=str(doc["studentId"]),
        name=str(doc.get("name") or ""),
        department=doc.get("department") or "",
        class_name=doc.get("class") or "",
        email=doc.get("email"),
    )


class MongoStudentRepository(StudentRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _col(self):
        return self._conn.db[STUDENTS]

    def get_by_id(self, ref: str) -> Optional[Student]:
        oid = to_object_id(ref)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return _to_student(doc) if doc else None

    def get_by_student_id(self, student_id: str) -> Optional[Student]:
        doc = self._col.find_one({"studentId": student_id})
        return _to_student(doc) if doc else None

    def get_by_name(self, name: str) -> Optional[Student]:
        doc = self._col.find_one({"name": name})
        return _to_student(doc) if doc else None

    def list_by_ids(self, refs: Iterable[str]) -> Sequence[Student]:
        oids = [oid for oid in (to_object_id(r) for r in refs) if oid is not None]
        if not oids:
            return []
        return [_to_student(d) for d in self._col.find({"_id": {"$in": oids}})]

    def list_by_student_ids(self, student_ids: Iterable[str]) -> Sequence[Student]:
        ids = list(student_ids)
        if not ids:
            return []
        return [_to_student(d) for d in self._col.find({"studentId": {"$in": ids}})]

    def list_all(self) -> Sequence[Student]:
        return [_to_student(d) for d in self._col.find().sort("studentId", 1)]

    def create(self, *, student_id: str, name: str, department: str, class_name: str, email: str) -> Student:
        doc = {
            "studentId": student_id,
            "name": name,
            "department": department,
            "class": class_name,
            "email": email,
        }
        with unique_guard("Student ID already exists"):
            inserted = self._col.insert_one(doc)
        doc["_id"] = inserted.inserted_id
        return _to_student(doc)
