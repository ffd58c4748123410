from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..common.csv_import import parse_roster_csv
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..courses.repository import CourseRepository
from ..students.model import Student
from ..students.repository import StudentRepository
from ..students.service import StudentService
from .model import CsvImportSummary, EnrolledStudent, Enrollment, ImportSummary
from .repository import EnrollmentRepository

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Use case: who is enrolled in which course."""

    def __init__(
        self,
        enrollments: EnrollmentRepository,
        courses: CourseRepository,
        students: StudentRepository,
        student_service: StudentService,
    ):
        self._enrollments = enrollments
        self._courses = courses
        self._students = students
        self._student_service = student_service

    def _require_course(self, course_id: str) -> None:
        if not course_id or not self._courses.get_by_id(course_id):
            raise NotFoundError("Course not found")

    def enroll(self, course_id: str, student_ref: str) -> Enrollment:
        self._require_course(course_id)
        student = self._student_service.get_student(require_non_empty(student_ref, "Student ID"))
        if self._enrollments.get(course_id, student.id):
            raise ConflictError("Student is already enrolled in this course")
        enrollment = self._enrollments.create(course_id=course_id, student_ref=student.id, enrolled_at=now_local())
        logger.info("student %s enrolled in course %s", student.student_id, course_id)
        return enrollment

    def import_students(self, course_id: str, refs: Iterable[str]) -> ImportSummary:
        """Enroll a batch; each id lands in exactly one outcome bucket."""

        self._require_course(course_id)
        refs = list(refs or [])
        if not refs:
            raise ValidationError("Student IDs must be a non-empty list")

        summary = ImportSummary()
        for ref in refs:
            ref = str(ref)
            try:
                self.enroll(course_id, ref)
                summary.enrolled.append(ref)
            except ConflictError:
                summary.already_enrolled.append(ref)
            except DomainError:
                summary.failed.append(ref)
        logger.info("course %s import: %s", course_id, summary.message)
        return summary

    def import_csv(self, course_id: str, csv_text: str) -> CsvImportSummary:
        self._require_course(course_id)
        rows = parse_roster_csv(csv_text)

        summary = CsvImportSummary()
        for row in rows:
            if not row.student_id:
                summary.fail(f"Row {row.line_no}: student ID is empty")
                continue

            student = self._students.get_by_student_id(row.student_id)
            if not student:
                if not row.name:
                    summary.fail(f"Row {row.line_no}: student {row.student_id} not found and no name given")
                    continue
                student = self._student_service.create_student(
                    student_id=row.student_id,
                    name=row.name,
                    department=row.department,
                    class_name=row.class_name,
                )

            if self._enrollments.get(course_id, student.id):
                summary.fail(f"Row {row.line_no}: student {row.student_id} is already enrolled")
                continue

            self._enrollments.create(course_id=course_id, student_ref=student.id, enrolled_at=now_local())
            summary.success_count += 1

        logger.info("course %s csv import: %s", course_id, summary.message)
        return summary

    def list_course_students(self, course_id: str) -> Sequence[EnrolledStudent]:
        """Enrolled students of a course, in enrollment order."""

        self._require_course(course_id)
        enrollments = self._enrollments.list_for_course(course_id)
        by_id = {s.id: s for s in self._students.list_by_ids(e.student_ref for e in enrollments)}
        return [EnrolledStudent(enrollment=e, student=by_id.get(e.student_ref)) for e in enrollments]

    def courses_of(self, student_ref: str) -> Sequence[Enrollment]:
        return self._enrollments.list_for_student(student_ref)

    def roster(self, course_id: str) -> list[Student]:
        """Directory records of the enrolled students; dangling references are skipped."""

        return [es.student for es in self.list_course_students(course_id) if es.student is not None]

    def remove(self, course_id: str, student_ref: str) -> None:
        student = self._student_service.resolve(student_ref)
        key = student.id if student else student_ref
        if not self._enrollments.delete(course_id, key):
            raise NotFoundError("Enrollment not found")
        logger.info("student %s removed from course %s", key, course_id)
