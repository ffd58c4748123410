from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_SEMESTER, DEFAULT_TEACHER
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..enrollments.repository import EnrollmentRepository
from ..students.service import StudentService
from .model import Course, CourseSchedule
from .repository import CourseRepository

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_schedule(data: Optional[Mapping[str, Any]]) -> CourseSchedule:
    """Validate a ``{dayOfWeek, startTime, endTime}`` payload."""

    if not isinstance(data, Mapping):
        raise ValidationError("Schedule is required")

    try:
        day = int(data.get("dayOfWeek"))
    except (TypeError, ValueError):
        raise ValidationError("Schedule day of week must be a number between 0 and 6")
    if not 0 <= day <= 6:
        raise ValidationError("Schedule day of week must be a number between 0 and 6")

    start = str(data.get("startTime") or "").strip()
    end = str(data.get("endTime") or "").strip()
    if not _HHMM.match(start) or not _HHMM.match(end):
        raise ValidationError("Schedule times must use HH:MM")
    if end <= start:
        raise ValidationError("Schedule end time must be after start time")

    return CourseSchedule(day_of_week=day, start_time=start, end_time=end)


class CourseService:
    def __init__(
        self,
        courses: CourseRepository,
        enrollments: EnrollmentRepository,
        students: StudentService,
    ):
        self._courses = courses
        self._enrollments = enrollments
        self._students = students

    def list_courses(self) -> Sequence[Course]:
        return self._courses.list_active()

    def get_course(self, course_id: str) -> Course:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def create_course(
        self,
        *,
        course_name: str,
        course_code: str,
        schedule: Optional[Mapping[str, Any]],
        teacher: Optional[str] = None,
        semester: Optional[str] = None,
        is_active: bool = True,
    ) -> Course:
        course_name = require_non_empty(course_name, "Course name")
        course_code = require_non_empty(course_code, "Course code")
        parsed = parse_schedule(schedule)

        if self._courses.get_by_code(course_code):
            raise ConflictError("Course code already exists")

        course = self._courses.create(
            course_name=course_name,
            course_code=course_code,
            teacher=(teacher or "").strip() or DEFAULT_TEACHER,
            semester=(semester or "").strip() or DEFAULT_SEMESTER,
            schedule=parsed,
            is_active=bool(is_active),
            now=now_local(),
        )
        logger.info("course %s (%s) created", course.course_code, course.course_id)
        return course

    def update_course(self, course_id: str, payload: Mapping[str, Any]) -> Course:
        """Partial update; only the keys present in ``payload`` change."""

        self.get_course(course_id)

        changes: dict[str, Any] = {}
        if "courseName" in payload:
            changes["course_name"] = require_non_empty(payload["courseName"], "Course name")
        if "courseCode" in payload:
            code = require_non_empty(payload["courseCode"], "Course code")
            other = self._courses.get_by_code(code)
            if other and other.course_id != course_id:
                raise ConflictError("Course code already exists")
            changes["course_code"] = code
        if "teacher" in payload:
            changes["teacher"] = str(payload["teacher"] or "").strip() or DEFAULT_TEACHER
        if "semester" in payload:
            changes["semester"] = str(payload["semester"] or "").strip() or DEFAULT_SEMESTER
        if "schedule" in payload:
            changes["schedule"] = parse_schedule(payload["schedule"])
        if "isActive" in payload:
            changes["is_active"] = bool(payload["isActive"])

        updated = self._courses.update(course_id, changes, now=now_local())
        if not updated:
            raise NotFoundError("Course not found")
        return updated

    def delete_course(self, course_id: str) -> None:
        if not self._courses.delete(course_id):
            raise NotFoundError("Course not found")
        logger.info("course %s deleted", course_id)

    def list_student_courses(self, student_ref: str) -> Sequence[Course]:
        """Active courses the given student is enrolled in."""

        student = self._students.get_student(student_ref)
        course_ids = [e.course_id for e in self._enrollments.list_for_student(student.id)]
        if not course_ids:
            return []
        return self._courses.list_active(course_ids=course_ids)
