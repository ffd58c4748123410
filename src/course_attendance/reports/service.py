from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from ..attendance.model import AttendanceSession
from ..attendance.repository import SessionRepository
from ..common.datetime_utils import fmt_datetime, now_local
from ..core.enums import RosterList, SessionStatus
from ..core.exceptions import NotFoundError
from ..courses.repository import CourseRepository
from ..enrollments.service import EnrollmentService
from ..students.model import Student
from .excel import write_workbook

logger = logging.getLogger(__name__)

_STATUS_LABEL = {
    RosterList.ATTENDED: "Present",
    RosterList.ABSENT: "Absent",
    RosterList.EXCUSED: "Excused",
}
UNMARKED = "Unmarked"
NO_RECORD = "No record"
IN_PROGRESS = "In progress"


def _rate(part: int, whole: int) -> str:
    return f"{part / whole * 100:.1f}%" if whole > 0 else "0%"


def _session_state(session: AttendanceSession) -> str:
    return "Ended" if session.status == SessionStatus.ENDED else IN_PROGRESS


@dataclass(frozen=True)
class ExcelExport:
    content: bytes
    filename: str


class ReportService:
    """Use case: spreadsheet exports of attendance data."""

    def __init__(self, sessions: SessionRepository, courses: CourseRepository, enrollments: EnrollmentService):
        self._sessions = sessions
        self._courses = courses
        self._enrollments = enrollments

    def _students_of(self, course_id: str) -> list[Student]:
        students = self._enrollments.roster(course_id)
        if not students:
            raise NotFoundError("This course has no students")
        return students

    def export_session(self, session_id: str, *, now: Optional[datetime] = None) -> ExcelExport:
        now = now or now_local()
        session = self._sessions.get_by_id(session_id) if session_id else None
        if not session:
            raise NotFoundError("Attendance session not found")
        course = self._courses.get_by_id(session.course_id)
        if not course:
            raise NotFoundError("Course not found")
        students = self._students_of(course.course_id)

        total = len(students)
        present, absent, excused = len(session.attended), len(session.absent), len(session.excused)
        marked = present + absent + excused

        overview = pd.DataFrame(
            [
                ("Course name", course.course_name),
                ("Course code", course.course_code),
                ("Session code", session.session_code),
                ("Session date", session.session_date.isoformat()),
                ("Start time", fmt_datetime(session.start_time)),
                ("End time", fmt_datetime(session.end_time, missing=IN_PROGRESS)),
                ("Status", _session_state(session)),
                ("Total students", total),
                ("Present", present),
                ("Absent", absent),
                ("Excused", excused),
                ("Attendance rate", f"{round(present / total * 100)}%"),
                ("Exported at", fmt_datetime(now)),
            ],
            columns=["Field", "Value"],
        )

        rows = []
        for student in students:
            found = session.locate(student.student_id)
            which, entry = found if found else (None, None)
            rows.append(
                {
                    "Student ID": student.student_id,
                    "Name": student.name,
                    "Department": student.department,
                    "Class": student.class_name,
                    "Status": _STATUS_LABEL[which] if which else UNMARKED,
                    "Check-in time": fmt_datetime(entry.check_in_time) if which == RosterList.ATTENDED else "-",
                    "Notes": entry.notes if entry else "",
                }
            )
        detail = pd.DataFrame(
            rows, columns=["Student ID", "Name", "Department", "Class", "Status", "Check-in time", "Notes"]
        )

        stats = pd.DataFrame(
            [
                ("Total students", total),
                ("Marked", marked),
                ("Unmarked", max(total - marked, 0)),
                ("Present", present),
                ("Absent", absent),
                ("Excused", excused),
                ("Attendance rate", _rate(present, total)),
                ("Generated at", fmt_datetime(now)),
            ],
            columns=["Metric", "Value"],
        )

        content = write_workbook(
            {"Session overview": overview, "Student attendance": detail, "Statistics": stats}
        )
        filename = f"{course.course_name}_attendance_{session.start_time.date().isoformat()}_{session.session_code}.xlsx"
        logger.info("exported session %s (%d students)", session.session_id, total)
        return ExcelExport(content=content, filename=filename)

    def export_course(self, course_id: str, *, now: Optional[datetime] = None) -> ExcelExport:
        now = now or now_local()
        course = self._courses.get_by_id(course_id) if course_id else None
        if not course:
            raise NotFoundError("Course not found")
        sessions = self._sessions.list_for_course(course.course_id)
        if not sessions:
            raise NotFoundError("This course has no attendance records yet")
        students = self._students_of(course.course_id)

        overview = pd.DataFrame(
            [
                ("Course name", course.course_name),
                ("Course code", course.course_code),
                ("Sessions", len(sessions)),
                ("Students", len(students)),
                ("Exported at", fmt_datetime(now)),
            ],
            columns=["Field", "Value"],
        )

        content = write_workbook(
            {
                "Overview": overview,
                "Details": self._details(sessions, students),
                "Student statistics": self._student_stats(sessions, students),
                "Daily statistics": self._daily_stats(sessions, len(students)),
            }
        )
        filename = f"{course.course_name}_attendance_{now.date().isoformat()}.xlsx"
        logger.info("exported course %s (%d sessions)", course.course_id, len(sessions))
        return ExcelExport(content=content, filename=filename)

    def _details(self, sessions: Sequence[AttendanceSession], students: Sequence[Student]) -> pd.DataFrame:
        directory = {s.student_id: s for s in students}
        rows = []
        for session in sessions:
            for which in RosterList:
                for entry in session.entries(which):
                    info = directory.get(entry.student_id)
                    rows.append(
                        {
                            "Date": session.start_time.date().isoformat(),
                            "Session code": session.session_code,
                            "Student ID": entry.student_id,
                            "Name": entry.user_name,
                            "Department": info.department if info else "",
                            "Class": info.class_name if info else "",
                            "Status": _STATUS_LABEL[which],
                            "Notes": entry.notes,
                            "Check-in time": fmt_datetime(entry.check_in_time) if which == RosterList.ATTENDED else "-",
                            "Session status": _session_state(session),
                        }
                    )
        return pd.DataFrame(
            rows,
            columns=[
                "Date",
                "Session code",
                "Student ID",
                "Name",
                "Department",
                "Class",
                "Status",
                "Notes",
                "Check-in time",
                "Session status",
            ],
        )

    def _student_stats(self, sessions: Sequence[AttendanceSession], students: Sequence[Student]) -> pd.DataFrame:
        # sessions arrive newest first, so the first hit is the latest one
        rows = []
        for student in students:
            counts = {which: 0 for which in RosterList}
            last_date, last_status = NO_RECORD, NO_RECORD
            for session in sessions:
                found = session.locate(student.student_id)
                if not found:
                    continue
                counts[found[0]] += 1
                if last_date == NO_RECORD:
                    last_date = session.start_time.date().isoformat()
                    last_status = _STATUS_LABEL[found[0]]
            total = sum(counts.values())
            rows.append(
                {
                    "Student ID": student.student_id,
                    "Name": student.name,
                    "Department": student.department,
                    "Class": student.class_name,
                    "Sessions": total,
                    "Present": counts[RosterList.ATTENDED],
                    "Absent": counts[RosterList.ABSENT],
                    "Excused": counts[RosterList.EXCUSED],
                    "Attendance rate": _rate(counts[RosterList.ATTENDED], total),
                    "Last session date": last_date,
                    "Last status": last_status,
                }
            )
        return pd.DataFrame(rows)

    def _daily_stats(self, sessions: Sequence[AttendanceSession], total_students: int) -> pd.DataFrame:
        rows = []
        for session in sessions:
            present, absent, excused = len(session.attended), len(session.absent), len(session.excused)
            marked = present + absent + excused
            rows.append(
                {
                    "Date": session.start_time.date().isoformat(),
                    "Session code": session.session_code,
                    "Start time": session.start_time.strftime("%H:%M:%S"),
                    "End time": session.end_time.strftime("%H:%M:%S") if session.end_time else IN_PROGRESS,
                    "Status": _session_state(session),
                    "Total students": total_students,
                    "Present": present,
                    "Absent": absent,
                    "Excused": excused,
                    "Attendance rate": _rate(present, marked),
                    "Absence rate": _rate(absent, marked),
                    "Excused rate": _rate(excused, marked),
                }
            )
        return pd.DataFrame(rows)
