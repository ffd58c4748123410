from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from pymongo import ReturnDocument

from ..database.bootstrap import COURSES
from ..database.connection import DatabaseConnection
from ..database.mongo_base import doc_id, to_object_id, unique_guard
from .model import Course, CourseSchedule
from .repository import CourseRepository

_FIELD_MAP = {
    "course_name": "courseName",
    "course_code": "courseCode",
    "teacher": "teacher",
    "semester": "semester",
    "is_active": "isActive",
}


def _to_course(doc: Dict[str, Any]) -> Course:
    sc = doc.get("schedule") or {}
    return Course(
        course_id=doc_id(doc),
        course_name=doc["courseName"],
        course_code=doc["courseCode"],
        teacher=doc.get("teacher") or "",
        semester=doc.get("semester") or "",
        schedule=CourseSchedule(
            day_of_week=int(sc.get("dayOfWeek", 0)),
            start_time=str(sc.get("startTime", "")),
            end_time=str(sc.get("endTime", "")),
        ),
        is_active=bool(doc.get("isActive", True)),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoCourseRepository(CourseRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _col(self):
        return self._conn.db[COURSES]

    def get_by_id(self, course_id: str) -> Optional[Course]:
        oid = to_object_id(course_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return _to_course(doc) if doc else None

    def get_by_code(self, course_code: str) -> Optional[Course]:
        doc = self._col.find_one({"courseCode": course_code})
        return _to_course(doc) if doc else None

    def list_active(self, *, course_ids: Optional[Iterable[str]] = None) -> Sequence[Course]:
        query: Dict[str, Any] = {"isActive": True}
        if course_ids is not None:
            query["_id"] = {"$in": [oid for oid in (to_object_id(c) for c in course_ids) if oid is not None]}
        return [_to_course(d) for d in self._col.find(query).sort("courseName", 1)]

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
        doc = {
            "courseName": course_name,
            "courseCode": course_code,
            "teacher": teacher,
            "semester": semester,
            "schedule": schedule.to_dict(),
            "isActive": is_active,
            "createdAt": now,
            "updatedAt": now,
        }
        with unique_guard("Course code already exists"):
            inserted = self._col.insert_one(doc)
        doc["_id"] = inserted.inserted_id
        return _to_course(doc)

    def update(self, course_id: str, changes: Mapping[str, Any], *, now: datetime) -> Optional[Course]:
        oid = to_object_id(course_id)
        if oid is None:
            return None

        update: Dict[str, Any] = {"updatedAt": now}
        for key, value in changes.items():
            if key == "schedule":
                update["schedule"] = value.to_dict()
            else:
                update[_FIELD_MAP[key]] = value

        with unique_guard("Course code already exists"):
            doc = self._col.find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
        return _to_course(doc) if doc else None

    def delete(self, course_id: str) -> bool:
        oid = to_object_id(course_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1
