from __future__ import annotations

import os
import random
import uuid
from datetime import datetime

import pytest
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from course_attendance.container import build_container
from course_attendance.database.bootstrap import ensure_indexes
from course_attendance.database.connection import DatabaseConnection, MongoConfig


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 9, 0, 0)


@pytest.fixture
def container():
    return build_container(
        backend="memory",
        jwt_secret="test-jwt-secret",
        jwt_expires_hours=1,
        email_domain="student.test",
        rng=random.Random(1234),
    )


@pytest.fixture
def course(container):
    return container.course_service.create_course(
        course_name="Data Structures",
        course_code="CS201",
        schedule={"dayOfWeek": 2, "startTime": "10:00", "endTime": "12:00"},
    )


@pytest.fixture
def students(container, course):
    """Five students, all enrolled in ``course``."""
    created = []
    for n in range(1, 6):
        student = container.student_service.create_student(
            student_id=f"S00{n}",
            name=f"Student {n}",
            department="Computer Science",
            class_name="CS-2A",
        )
        container.enrollment_service.enroll(course.course_id, student.id)
        created.append(student)
    return created


@pytest.fixture
def mongo_conn():
    """A throwaway database on a real MongoDB server, dropped afterwards.

    Point ``MONGO_TEST_URI`` at the server; tests are skipped when it cannot be reached.
    """
    uri = os.getenv("MONGO_TEST_URI", "mongodb://127.0.0.1:27017")
    client = MongoClient(uri, serverSelectionTimeoutMS=1000, tz_aware=False)
    try:
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        pytest.skip(f"MongoDB not reachable at {uri}")

    name = f"course_attendance_test_{uuid.uuid4().hex[:12]}"
    conn = DatabaseConnection(
        MongoConfig(host="test", port=0, user="", password="", database=name),
        client=client,
    )
    ensure_indexes(conn)
    yield conn
    client.drop_database(name)
    conn.close()
