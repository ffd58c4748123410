from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from .model import Course, CourseSchedule


class CourseRepository(Protocol):
    def get_by_id(self, course_id: str) -> Optional[Course]:
        raise NotImplementedError

    def get_by_code(self, course_code: str) -> Optional[Course]:
        raise NotImplementedError

    def list_active(self, *, course_ids: Optional[Iterable[str]] = None) -> Sequence[Course]:
        """Active courses sorted by name, optionally restricted to ``course_ids``."""

        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, course_id: str, changes: Mapping[str, Any], *, now: datetime) -> Optional[Course]:
        """Apply field changes (domain field names); None when the course is missing."""

        raise NotImplementedError

    def delete(self, course_id: str) -> bool:
        raise NotImplementedError
