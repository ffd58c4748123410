from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence

from pymongo import DESCENDING, ReturnDocument

from ..core.enums import AttendanceMode, RosterList, SessionStatus
from ..database.bootstrap import SESSIONS
from ..database.connection import DatabaseConnection
from ..database.mongo_base import doc_id, to_object_id, unique_guard
from . import roster
from .model import AttendanceSession, NewSession, RosterEntry
from .repository import SessionRepository

_LIST_FIELDS = {
    RosterList.ATTENDED: "attendedStudents",
    RosterList.ABSENT: "absentStudents",
    RosterList.EXCUSED: "excusedStudents",
}


def _entry_doc(entry: RosterEntry) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"studentId": entry.student_id, "userName": entry.user_name, "notes": entry.notes}
    if entry.check_in_time is not None:
        doc["checkInTime"] = entry.check_in_time
    return doc


def _to_entry(doc: Dict[str, Any]) -> RosterEntry:
    return RosterEntry(
        student_id=str(doc.get("studentId", "")),
        user_name=doc.get("userName") or "",
        check_in_time=doc.get("checkInTime"),
        notes=doc.get("notes") or "",
    )


def _to_session(doc: Dict[str, Any]) -> AttendanceSession:
    start = doc["startTime"]
    day = doc.get("sessionDate")
    return AttendanceSession(
        session_id=doc_id(doc),
        course_id=str(doc["courseId"]),
        course_name=doc.get("courseName") or "",
        session_code=doc["sessionCode"],
        mode=AttendanceMode(doc.get("mode", AttendanceMode.CODE.value)),
        session_date=day.date() if isinstance(day, datetime) else start.date(),
        start_time=start,
        status=SessionStatus(doc.get("status", SessionStatus.ACTIVE.value)),
        attended=tuple(_to_entry(e) for e in doc.get(_LIST_FIELDS[RosterList.ATTENDED]) or []),
        absent=tuple(_to_entry(e) for e in doc.get(_LIST_FIELDS[RosterList.ABSENT]) or []),
        excused=tuple(_to_entry(e) for e in doc.get(_LIST_FIELDS[RosterList.EXCUSED]) or []),
        end_time=doc.get("endTime"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _list(which: RosterList) -> Dict[str, Any]:
    return {"$ifNull": ["$" + _LIST_FIELDS[which], []]}


def _without(which: RosterList, student_id: str) -> Dict[str, Any]:
    return {"$filter": {"input": _list(which), "as": "e", "cond": {"$ne": ["$$e.studentId", student_id]}}}


def _has(which: RosterList, student_id: str) -> Dict[str, Any]:
    return {"$in": [student_id, {"$map": {"input": _list(which), "as": "e", "in": "$$e.studentId"}}]}


class MongoSessionRepository(SessionRepository):
    """Sessions stored one document each; roster edits are single-document
    conditional or pipeline updates, never a read-modify-write of the lists."""

    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _col(self):
        return self._conn.db[SESSIONS]

    def _update(self, session_id: str, pipeline: List[Dict[str, Any]]) -> Optional[AttendanceSession]:
        oid = to_object_id(session_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update({"_id": oid}, pipeline, return_document=ReturnDocument.AFTER)
        return _to_session(doc) if doc else None

    def create(self, new: NewSession, *, now: datetime) -> AttendanceSession:
        doc = {
            "courseId": new.course_id,
            "courseName": new.course_name,
            "sessionCode": new.session_code,
            "mode": new.mode.value,
            "sessionDate": datetime.combine(new.session_date, time.min),
            "startTime": new.start_time,
            "status": SessionStatus.ACTIVE.value,
            _LIST_FIELDS[RosterList.ATTENDED]: [_entry_doc(e) for e in new.attended],
            _LIST_FIELDS[RosterList.ABSENT]: [],
            _LIST_FIELDS[RosterList.EXCUSED]: [],
            "createdAt": now,
            "updatedAt": now,
        }
        with unique_guard("Session code already in use"):
            inserted = self._col.insert_one(doc)
        doc["_id"] = inserted.inserted_id
        return _to_session(doc)

    def get_by_id(self, session_id: str) -> Optional[AttendanceSession]:
        oid = to_object_id(session_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return _to_session(doc) if doc else None

    def get_active_by_code(self, session_code: str) -> Optional[AttendanceSession]:
        doc = self._col.find_one({"sessionCode": session_code, "status": SessionStatus.ACTIVE.value})
        return _to_session(doc) if doc else None

    def list_all(self, *, status: Optional[SessionStatus] = None) -> Sequence[AttendanceSession]:
        query = {"status": status.value} if status else {}
        return [_to_session(d) for d in self._col.find(query).sort("startTime", DESCENDING)]

    def list_for_course(
        self,
        course_id: str,
        *,
        status: Optional[SessionStatus] = None,
        started_from: Optional[datetime] = None,
        started_before: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        query: Dict[str, Any] = {"courseId": course_id}
        if status:
            query["status"] = status.value
        window: Dict[str, Any] = {}
        if started_from is not None:
            window["$gte"] = started_from
        if started_before is not None:
            window["$lt"] = started_before
        if window:
            query["startTime"] = window
        return [_to_session(d) for d in self._col.find(query).sort("startTime", DESCENDING)]

    def mark_ended(self, session_id: str, *, now: datetime) -> Optional[AttendanceSession]:
        oid = to_object_id(session_id)
        if oid is None:
            return None
        self._col.update_one(
            {"_id": oid, "status": SessionStatus.ACTIVE.value},
            {"$set": {"status": SessionStatus.ENDED.value, "endTime": now, "updatedAt": now}},
        )
        return self.get_by_id(session_id)

    def append_attended_if_absent(self, session_id: str, entry: RosterEntry, *, now: datetime) -> bool:
        oid = to_object_id(session_id)
        if oid is None:
            return False
        result = self._col.update_one(
            {
                "_id": oid,
                "status": SessionStatus.ACTIVE.value,
                _LIST_FIELDS[RosterList.ATTENDED] + ".studentId": {"$ne": entry.student_id},
            },
            {
                "$push": {_LIST_FIELDS[RosterList.ATTENDED]: _entry_doc(entry)},
                "$pull": {
                    _LIST_FIELDS[RosterList.ABSENT]: {"studentId": entry.student_id},
                    _LIST_FIELDS[RosterList.EXCUSED]: {"studentId": entry.student_id},
                },
                "$set": {"updatedAt": now},
            },
        )
        return result.modified_count == 1

    def place_student(
        self, session_id: str, entry: RosterEntry, target: RosterList, *, now: datetime
    ) -> Optional[AttendanceSession]:
        cleared = {_LIST_FIELDS[w]: _without(w, entry.student_id) for w in RosterList}
        cleared["updatedAt"] = now
        appended = {
            _LIST_FIELDS[target]: {
                "$concatArrays": ["$" + _LIST_FIELDS[target], {"$literal": [_entry_doc(entry)]}]
            }
        }
        return self._update(session_id, [{"$set": cleared}, {"$set": appended}])

    def toggle_student(
        self, session_id: str, entry: RosterEntry, target: RosterList, *, now: datetime
    ) -> Optional[AttendanceSession]:
        changes: Dict[str, Any] = {"updatedAt": now}
        for which in RosterList:
            if which != target:
                changes[_LIST_FIELDS[which]] = _without(which, entry.student_id)
            else:
                changes[_LIST_FIELDS[which]] = {
                    "$cond": [
                        _has(which, entry.student_id),
                        _list(which),
                        {"$concatArrays": [_list(which), {"$literal": [_entry_doc(entry)]}]},
                    ]
                }
        return self._update(session_id, [{"$set": changes}])

    def mark_all_present(
        self, session_id: str, entries: Sequence[RosterEntry], *, now: datetime
    ) -> Optional[tuple[AttendanceSession, int]]:
        oid = to_object_id(session_id)
        if oid is None:
            return None

        attended = RosterList.ATTENDED
        missing = {
            "$filter": {
                "input": {"$literal": [_entry_doc(e) for e in entries]},
                "as": "n",
                "cond": {
                    "$not": [{"$in": ["$$n.studentId", {"$map": {"input": _list(attended), "as": "e", "in": "$$e.studentId"}}]}]
                },
            }
        }
        pipeline = [
            {
                "$set": {
                    _LIST_FIELDS[attended]: {"$concatArrays": [_list(attended), missing]},
                    _LIST_FIELDS[RosterList.ABSENT]: [],
                    _LIST_FIELDS[RosterList.EXCUSED]: [],
                    "updatedAt": now,
                }
            }
        ]
        before = self._col.find_one_and_update({"_id": oid}, pipeline, return_document=ReturnDocument.BEFORE)
        if not before:
            return None
        # the pipeline ran against exactly this document, so replaying it locally yields the stored result
        return roster.mark_all_present(_to_session(before), entries, now=now)
