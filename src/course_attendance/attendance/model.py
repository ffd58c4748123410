from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceMode, RosterList, SessionStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class RosterEntry:
    """One student's line in a session roster."""

    student_id: str  # school number
    user_name: str
    check_in_time: Optional[datetime] = None
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "userName": self.user_name,
            "checkInTime": _iso(self.check_in_time),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one attendance-taking event for a course meeting.

    Each student id appears in at most one of ``attended``, ``absent`` and
    ``excused``.
    """

    session_id: str
    course_id: str
    course_name: str
    session_code: str
    mode: AttendanceMode
    session_date: date
    start_time: datetime
    status: SessionStatus
    attended: tuple[RosterEntry, ...] = ()
    absent: tuple[RosterEntry, ...] = ()
    excused: tuple[RosterEntry, ...] = ()
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def attendance_count(self) -> int:
        return len(self.attended)

    def entries(self, which: RosterList) -> tuple[RosterEntry, ...]:
        return getattr(self, which.value)

    def locate(self, student_id: str) -> Optional[tuple[RosterList, RosterEntry]]:
        for which in RosterList:
            for entry in self.entries(which):
                if entry.student_id == student_id:
                    return which, entry
        return None

    def to_dict(self) -> dict:
        return {
            "_id": self.session_id,
            "courseId": self.course_id,
            "courseName": self.course_name,
            "sessionCode": self.session_code,
            "mode": self.mode.value,
            "sessionDate": self.session_date.isoformat(),
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "status": self.status.value,
            "attendedStudents": [e.to_dict() for e in self.attended],
            "absentStudents": [e.to_dict() for e in self.absent],
            "excusedStudents": [e.to_dict() for e in self.excused],
            "attendanceCount": self.attendance_count,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class MarkAllResult:
    marked_count: int
    total_students: int

    def to_dict(self) -> dict:
        return {"markedCount": self.marked_count, "totalStudents": self.total_students}


@dataclass(frozen=True)
class CheckInReceipt:
    student_id: str
    user_name: str
    check_in_time: datetime
    session_code: str
    course_name: str

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "userName": self.user_name,
            "checkInTime": self.check_in_time.isoformat(),
            "sessionCode": self.session_code,
            "courseName": self.course_name,
        }


@dataclass(frozen=True)
class RandomPick:
    student_id: str
    user_name: str
    session_code: str
    check_in_time: Optional[datetime]
    notes: str = ""
    department: str = ""
    class_name: str = ""
    email: str = ""

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "userName": self.user_name,
            "department": self.department,
            "class": self.class_name,
            "sessionCode": self.session_code,
            "checkInTime": _iso(self.check_in_time),
            "notes": self.notes,
            "email": self.email,
        }


@dataclass(frozen=True)
class RandomSelection:
    picks: tuple[RandomPick, ...]
    total_present_students: int
    total_sessions: int
    selection_date: date
    course_name: str

    def to_dict(self) -> dict:
        return {
            "selectedStudents": [p.to_dict() for p in self.picks],
            "totalPresentStudents": self.total_present_students,
            "totalSessions": self.total_sessions,
            "selectionDate": self.selection_date.isoformat(),
            "courseName": self.course_name,
        }


@dataclass(frozen=True)
class StudentRecord:
    """A student's standing in one session."""

    session_id: str
    course_id: str
    course_name: str
    session_code: str
    session_date: date
    start_time: datetime
    status: str  # present | absent | excused | unmarked
    check_in_time: Optional[datetime] = None
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "courseId": self.course_id,
            "courseName": self.course_name,
            "sessionCode": self.session_code,
            "sessionDate": self.session_date.isoformat(),
            "startTime": _iso(self.start_time),
            "status": self.status,
            "checkInTime": _iso(self.check_in_time),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class CourseStats:
    present: int = 0
    absent: int = 0
    excused: int = 0
    sessions: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.excused

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "excused": self.excused,
            "sessions": self.sessions,
        }


@dataclass
class NewSession:
    """Values for a session about to be inserted."""

    course_id: str
    course_name: str
    session_code: str
    mode: AttendanceMode
    session_date: date
    start_time: datetime
    attended: list[RosterEntry] = field(default_factory=list)
