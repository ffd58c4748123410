from __future__ import annotations

import dataclasses
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from ..core.exceptions import ConflictError
from .model import Course, CourseSchedule
from .repository import CourseRepository


class InMemoryCourseRepository(CourseRepository):
    def __init__(self):
        self._courses: Dict[str, Course] = {}
        self._lock = threading.Lock()

    def get_by_id(self, course_id: str) -> Optional[Course]:
        return self._courses.get(str(course_id))

    def get_by_code(self, course_code: str) -> Optional[Course]:
        return next((c for c in self._courses.values() if c.course_code == course_code), None)

    def list_active(self, *, course_ids: Optional[Iterable[str]] = None) -> Sequence[Course]:
        wanted = set(course_ids) if course_ids is not None else None
        items = [c for c in self._courses.values() if c.is_active and (wanted is None or c.course_id in wanted)]
        return sorted(items, key=lambda c: c.course_name)

    def create(
        self,
        *,
        course_name: str,
        course_code: str,
        teacher: str,
        semester: str,
        schedule: CourseSchedule,
        is_active: bool,
        now: datetime,
    ) -> Course:
        with self._lock:
            if self.get_by_code(course_code):
                raise ConflictError("Course code already exists")
            course = Course(
                course_id=uuid.uuid4().hex,
                course_name=course_name,
                course_code=course_code,
                teacher=teacher,
                semester=semester,
                schedule=schedule,
                is_active=is_active,
                created_at=now,
                updated_at=now,
            )
            self._courses[course.course_id] = course
            return course

    def update(self, course_id: str, changes: Mapping[str, Any], *, now: datetime) -> Optional[Course]:
        with self._lock:
            course = self._courses.get(str(course_id))
            if not course:
                return None
            code = changes.get("course_code")
            if code and code != course.course_code and self.get_by_code(code):
                raise ConflictError("Course code already exists")
            updated = dataclasses.replace(course, updated_at=now, **dict(changes))
            self._courses[course.course_id] = updated
            return updated

    def delete(self, course_id: str) -> bool:
        with self._lock:
            return self._courses.pop(str(course_id), None) is not None
