from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Dict, Optional, Sequence

from ..core.exceptions import ConflictError
from .model import Enrollment
from .repository import EnrollmentRepository


class InMemoryEnrollmentRepository(EnrollmentRepository):
    def __init__(self):
        self._by_pair: Dict[tuple[str, str], Enrollment] = {}
        self._lock = threading.Lock()

    def get(self, course_id: str, student_ref: str) -> Optional[Enrollment]:
        return self._by_pair.get((course_id, student_ref))

    def list_for_course(self, course_id: str) -> Sequence[Enrollment]:
        # dicts keep insertion order, the sort is stable for equal timestamps
        items = [e for e in self._by_pair.values() if e.course_id == course_id]
        return sorted(items, key=lambda e: e.enrolled_at)

    def list_for_student(self, student_ref: str) -> Sequence[Enrollment]:
        return [e for e in self._by_pair.values() if e.student_ref == student_ref]

    def create(self, *, course_id: str, student_ref: str, enrolled_at: datetime) -> Enrollment:
        with self._lock:
            if (course_id, student_ref) in self._by_pair:
                raise ConflictError("Student is already enrolled in this course")
            enrollment = Enrollment(
                enrollment_id=uuid.uuid4().hex,
                course_id=course_id,
                student_ref=student_ref,
                enrolled_at=enrolled_at,
            )
            self._by_pair[(course_id, student_ref)] = enrollment
            return enrollment

    def delete(self, course_id: str, student_ref: str) -> bool:
        with self._lock:
            return self._by_pair.pop((course_id, student_ref), None) is not None
