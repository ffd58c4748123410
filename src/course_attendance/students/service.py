from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..common.validators import require_non_empty
from ..core.exceptions import ConflictError, NotFoundError
from .model import Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use case: student directory (admin) and lookups for roster entries."""

    def __init__(self, students: StudentRepository, *, email_domain: str):
        self._students = students
        self._email_domain = email_domain

    def email_for(self, student_id: str) -> str:
        return f"{student_id}@{self._email_domain}"

    def resolve(self, ref: str) -> Optional[Student]:
        """Find a student by storage key, falling back to the school number."""
        if not ref:
            return None
        return self._students.get_by_id(ref) or self._students.get_by_student_id(ref)

    def get_student(self, ref: str) -> Student:
        student = self.resolve(ref)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def list_students(self) -> Sequence[Student]:
        return self._students.list_all()

    def create_student(
        self,
        *,
        student_id: str,
        name: str,
        department: str = "",
        class_name: str = "",
    ) -> Student:
        student_id = require_non_empty(student_id, "Student ID")
        name = require_non_empty(name, "Name")

        if self._students.get_by_student_id(student_id):
            raise ConflictError("Student ID already exists")

        student = self._students.create(
            student_id=student_id,
            name=name,
            department=(department or "").strip(),
            class_name=(class_name or "").strip(),
            email=self.email_for(student_id),
        )
        logger.info("student %s created", student.student_id)
        return student

    def by_student_ids(self, student_ids: Iterable[str]) -> dict[str, Student]:
        """Directory records keyed by school number; unknown numbers are absent."""
        return {s.student_id: s for s in self._students.list_by_student_ids(list(student_ids))}
