from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

COURSES = "courses"
STUDENTS = "students"
ENROLLMENTS = "courseStudents"
SESSIONS = "attendanceSessions"
USERS = "users"


def ensure_indexes(conn: DatabaseConnection) -> None:
    """Create the unique keys the services rely on. Safe to run repeatedly."""

    db = conn.db
    db[COURSES].create_index([("courseCode", ASCENDING)], unique=True)
    db[STUDENTS].create_index([("studentId", ASCENDING)], unique=True)
    db[ENROLLMENTS].create_index([("courseId", ASCENDING), ("studentRef", ASCENDING)], unique=True)
    db[SESSIONS].create_index([("sessionCode", ASCENDING)], unique=True)
    db[SESSIONS].create_index([("courseId", ASCENDING), ("status", ASCENDING), ("startTime", DESCENDING)])
    db[USERS].create_index([("userName", ASCENDING)], unique=True)
    logger.info("indexes ready on %s", conn.config.display)


def list_collections(conn: DatabaseConnection) -> list[str]:
    return sorted(conn.db.list_collection_names())
