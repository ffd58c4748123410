from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .attendance.memory_session_repository import InMemorySessionRepository
from .attendance.mongo_session_repository import MongoSessionRepository
from .attendance.repository import SessionRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TOKEN_HOURS
from .courses.memory_course_repository import InMemoryCourseRepository
from .courses.mongo_course_repository import MongoCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.connection import DatabaseConnection, as_mongo_config
from .enrollments.memory_enrollment_repository import InMemoryEnrollmentRepository
from .enrollments.mongo_enrollment_repository import MongoEnrollmentRepository
from .enrollments.repository import EnrollmentRepository
from .enrollments.service import EnrollmentService
from .reports.service import ReportService
from .students.memory_student_repository import InMemoryStudentRepository
from .students.mongo_student_repository import MongoStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .users.memory_user_repository import InMemoryUserRepository
from .users.mongo_user_repository import MongoUserRepository
from .users.repository import UserRepository
from .users.service import AuthService
from .users.tokens import TokenIssuer


@dataclass(frozen=True)
class Container:
    # None for the in-memory backend
    conn: Optional[DatabaseConnection]

    courses_repo: CourseRepository
    students_repo: StudentRepository
    enrollments_repo: EnrollmentRepository
    sessions_repo: SessionRepository
    users_repo: UserRepository

    auth_service: AuthService
    student_service: StudentService
    course_service: CourseService
    enrollment_service: EnrollmentService
    attendance_service: AttendanceService
    report_service: ReportService

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()


def build_container(
    *,
    backend: str = "mongo",
    db_config: Optional[dict] = None,
    jwt_secret: str,
    jwt_expires_hours: int = DEFAULT_TOKEN_HOURS,
    email_domain: str,
    rng: Optional[random.Random] = None,
) -> Container:
    if backend == "memory":
        conn = None
        courses_repo = InMemoryCourseRepository()
        students_repo = InMemoryStudentRepository()
        enrollments_repo = InMemoryEnrollmentRepository()
        sessions_repo = InMemorySessionRepository()
        users_repo = InMemoryUserRepository()
    elif backend == "mongo":
        conn = DatabaseConnection(as_mongo_config(db_config or {}))
        courses_repo = MongoCourseRepository(conn)
        students_repo = MongoStudentRepository(conn)
        enrollments_repo = MongoEnrollmentRepository(conn)
        sessions_repo = MongoSessionRepository(conn)
        users_repo = MongoUserRepository(conn)
    else:
        raise ValueError(f"Unknown DB_BACKEND: {backend!r}")

    student_service = StudentService(students_repo, email_domain=email_domain)
    enrollment_service = EnrollmentService(enrollments_repo, courses_repo, students_repo, student_service)
    course_service = CourseService(courses_repo, enrollments_repo, student_service)
    auth_service = AuthService(
        users_repo,
        students_repo,
        TokenIssuer(jwt_secret, expires_hours=jwt_expires_hours),
        email_domain=email_domain,
    )
    attendance_service = AttendanceService(
        sessions_repo,
        courses_repo,
        enrollment_service,
        student_service,
        rng=rng,
    )
    report_service = ReportService(sessions_repo, courses_repo, enrollment_service)

    return Container(
        conn=conn,
        courses_repo=courses_repo,
        students_repo=students_repo,
        enrollments_repo=enrollments_repo,
        sessions_repo=sessions_repo,
        users_repo=users_repo,
        auth_service=auth_service,
        student_service=student_service,
        course_service=course_service,
        enrollment_service=enrollment_service,
        attendance_service=attendance_service,
        report_service=report_service,
    )
