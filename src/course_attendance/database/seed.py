from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.enums import Role

if TYPE_CHECKING:
    from ..container import Container

logger = logging.getLogger(__name__)

DEMO_COURSE = {
    "course_name": "Introduction to Programming",
    "course_code": "CS101",
    "teacher": "Admin Demo",
    "schedule": {"dayOfWeek": 1, "startTime": "09:00", "endTime": "11:00"},
}

DEMO_STUDENTS = [
    ("S001", "Alice Chen", "Computer Science", "CS-1A"),
    ("S002", "Bob Lin", "Computer Science", "CS-1A"),
    ("S003", "Carol Wang", "Information Management", "IM-1B"),
    ("S004", "David Huang", "Information Management", "IM-1B"),
    ("S005", "Eve Tsai", "Electrical Engineering", "EE-1A"),
]


def ensure_demo_data(container: "Container") -> None:
    """Create a demo admin, five students with accounts and one course. Safe to rerun."""

    auth = container.auth_service
    users = container.users_repo

    if not users.get_by_username("admin"):
        auth.register(username="admin", password="admin123", role=Role.ADMIN.value)

    course = container.courses_repo.get_by_code(DEMO_COURSE["course_code"])
    if not course:
        course = container.course_service.create_course(**DEMO_COURSE)

    for sid, name, dept, klass in DEMO_STUDENTS:
        student = container.students_repo.get_by_student_id(sid)
        if not student:
            student = container.student_service.create_student(
                student_id=sid, name=name, department=dept, class_name=klass
            )
        if not container.enrollments_repo.get(course.course_id, student.id):
            container.enrollment_service.enroll(course.course_id, student.id)
        if not users.get_by_username(sid):
            auth.register(
                username=sid,
                password="student123",
                role=Role.STUDENT.value,
                student_info={"sid": sid, "name": name, "department": dept, "class": klass},
            )

    logger.info("demo data ready (course %s, %d students)", course.course_code, len(DEMO_STUDENTS))
