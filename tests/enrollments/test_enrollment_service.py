from __future__ import annotations

import pytest

from course_attendance.core.exceptions import ConflictError, NotFoundError, ValidationError


def _student(container, sid: str, name: str):
    return container.student_service.create_student(student_id=sid, name=name)


def test_enroll_twice_conflicts(container, course):
    s = _student(container, "S100", "Ann")
    container.enrollment_service.enroll(course.course_id, s.id)

    with pytest.raises(ConflictError):
        container.enrollment_service.enroll(course.course_id, s.id)


def test_enroll_unknown_course_or_student(container, course):
    s = _student(container, "S100", "Ann")
    with pytest.raises(NotFoundError):
        container.enrollment_service.enroll("missing", s.id)
    with pytest.raises(NotFoundError):
        container.enrollment_service.enroll(course.course_id, "nobody")


def test_import_students_buckets_each_id(container, course):
    a = _student(container, "S100", "Ann")
    b = _student(container, "S101", "Ben")
    container.enrollment_service.enroll(course.course_id, a.id)

    summary = container.enrollment_service.import_students(course.course_id, [a.id, b.id, "ghost"])

    assert summary.enrolled == [b.id]
    assert summary.already_enrolled == [a.id]
    assert summary.failed == ["ghost"]
    assert summary.to_dict()["enrolledCount"] == 1


def test_import_students_requires_ids(container, course):
    with pytest.raises(ValidationError):
        container.enrollment_service.import_students(course.course_id, [])


def test_import_csv_creates_and_enrolls(container, course):
    _student(container, "S200", "Existing")
    csv_text = "\n".join(
        [
            "Name,StudentId,Department,Class",
            "Existing,S200,,",
            "New Person,S201,Math,M-1",
            ",S202,,",
            "Nobody,,,",
        ]
    )

    result = container.enrollment_service.import_csv(course.course_id, csv_text)

    assert result.success_count == 2
    assert result.failure_count == 2
    created = container.student_service.get_student("S201")
    assert created.department == "Math"
    assert created.class_name == "M-1"
    assert created.email == "S201@student.test"
    listed = [es.student.student_id for es in container.enrollment_service.list_course_students(course.course_id)]
    assert listed == ["S200", "S201"]


def test_import_csv_reports_already_enrolled_rows(container, course, students):
    result = container.enrollment_service.import_csv(course.course_id, "studentId,name\nS001,Student 1\n")

    assert result.success_count == 0
    assert result.errors == ["Row 2: student S001 is already enrolled"]


def test_import_csv_error_rows_match_file_lines(container, course):
    result = container.enrollment_service.import_csv(course.course_id, "studentId,name\n\nS300,Ann\n,NoId\n")

    assert result.success_count == 1
    assert result.errors == ["Row 4: student ID is empty"]


def test_import_csv_needs_header_and_row(container, course):
    with pytest.raises(ValidationError):
        container.enrollment_service.import_csv(course.course_id, "studentId,name\n")


def test_remove_enrollment(container, course, students):
    svc = container.enrollment_service
    svc.remove(course.course_id, "S001")

    assert [s.student_id for s in svc.roster(course.course_id)] == ["S002", "S003", "S004", "S005"]
    with pytest.raises(NotFoundError):
        svc.remove(course.course_id, "S001")
