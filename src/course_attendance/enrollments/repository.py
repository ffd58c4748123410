from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Enrollment


class EnrollmentRepository(Protocol):
    def get(self, course_id: str, student_ref: str) -> Optional[Enrollment]:
        raise NotImplementedError

    def list_for_course(self, course_id: str) -> Sequence[Enrollment]:
        """Enrollments of a course, oldest first."""

        raise NotImplementedError

    def list_for_student(self, student_ref: str) -> Sequence[Enrollment]:
        raise NotImplementedError

    def create(self, *, course_id: str, student_ref: str, enrolled_at: datetime) -> Enrollment:
        """Insert; raises ConflictError when the pair already exists."""

        raise NotImplementedError

    def delete(self, course_id: str, student_ref: str) -> bool:
        raise NotImplementedError
