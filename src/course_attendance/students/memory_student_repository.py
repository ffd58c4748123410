from __future__ import annotations

import threading
import uuid
from typing import Dict, Iterable, Optional, Sequence

from ..core.exceptions import ConflictError
from .model import Student
from .repository import StudentRepository


class InMemoryStudentRepository(StudentRepository):
    def __init__(self):
        self._by_id: Dict[str, Student] = {}
        self._lock = threading.Lock()

    def get_by_id(self, ref: str) -> Optional[Student]:
        return self._by_id.get(str(ref))

    def get_by_student_id(self, student_id: str) -> Optional[Student]:
        return next((s for s in self._by_id.values() if s.student_id == student_id), None)

    def get_by_name(self, name: str) -> Optional[Student]:
        return next((s for s in self._by_id.values() if s.name == name), None)

    def list_by_ids(self, refs: Iterable[str]) -> Sequence[Student]:
        return [self._by_id[r] for r in refs if r in self._by_id]

    def list_by_student_ids(self, student_ids: Iterable[str]) -> Sequence[Student]:
        wanted = set(student_ids)
        return [s for s in self._by_id.values() if s.student_id in wanted]

    def list_all(self) -> Sequence[Student]:
        return sorted(self._by_id.values(), key=lambda s: s.student_id)

    def create(self, *, student_id: str, name: str, department: str, class_name: str, email: str) -> Student:
        with self._lock:
            if self.get_by_student_id(student_id):
                raise ConflictError("Student ID already exists")
            student = Student(
                id=uuid.uuid4().hex,
                student_id=student_id,
                name=name,
                department=department,
                class_name=class_name,
                email=email,
            )
            self._by_id[student.id] = student
            return student
