from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds, now_local
from ..common.validators import require_choice, require_non_empty
from ..core.constants import (
    MANUAL_CODE_PREFIX,
    QR_CODE_PREFIX,
    RANDOM_SELECTION_SIZE,
    SESSION_CODE_DIGITS,
    UNKNOWN_STUDENT_NAME,
)
from ..core.enums import AttendanceMark, AttendanceMode, RosterList, SessionStatus
from ..core.exceptions import (
    AlreadyCheckedInError,
    ConflictError,
    InvalidCodeError,
    NotFoundError,
    ValidationError,
)
from ..courses.repository import CourseRepository
from ..enrollments.model import EnrolledStudent
from ..enrollments.service import EnrollmentService
from ..students.model import Student
from ..students.service import StudentService
from ..users.model import User
from . import qr
from .model import (
    AttendanceSession,
    CheckInReceipt,
    CourseStats,
    MarkAllResult,
    NewSession,
    RandomPick,
    RandomSelection,
    RosterEntry,
    StudentRecord,
)
from .repository import SessionRepository

logger = logging.getLogger(__name__)

_CODE_ATTEMPTS = 5

_MARK_FOR_LIST = {
    RosterList.ATTENDED: "present",
    RosterList.ABSENT: "absent",
    RosterList.EXCUSED: "excused",
}


def fisher_yates(items: Sequence, rng: random.Random) -> list:
    """Uniform random permutation of ``items`` (a new list)."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


@dataclass(frozen=True)
class StartedSession:
    session: AttendanceSession
    seeded: int

    @property
    def message(self) -> str:
        return f"Attendance session started, {self.seeded} students marked present by default"


class AttendanceService:
    """Use case: run attendance sessions and edit their rosters."""

    def __init__(
        self,
        sessions: SessionRepository,
        courses: CourseRepository,
        enrollments: EnrollmentService,
        students: StudentService,
        *,
        rng: random.Random | None = None,
    ):
        self._sessions = sessions
        self._courses = courses
        self._enrollments = enrollments
        self._students = students
        self._rng = rng or random.SystemRandom()

    # -- lookups ---------------------------------------------------------

    def get_session(self, session_id: str) -> AttendanceSession:
        session = self._sessions.get_by_id(session_id) if session_id else None
        if not session:
            raise NotFoundError("Attendance session not found")
        return session

    def list_active_sessions(self) -> Sequence[AttendanceSession]:
        return self._sessions.list_all(status=SessionStatus.ACTIVE)

    def list_all_sessions(self) -> Sequence[AttendanceSession]:
        return self._sessions.list_all()

    def course_students_for_attendance(self, course_id: str) -> Sequence[EnrolledStudent]:
        return self._enrollments.list_course_students(course_id)

    def _course_name(self, course_id: str) -> str:
        course = self._courses.get_by_id(course_id) if course_id else None
        if not course:
            raise NotFoundError("Course not found")
        return course.course_name

    def _entry_for(self, student: Student, *, at: Optional[datetime], notes: str = "") -> RosterEntry:
        return RosterEntry(
            student_id=student.student_id,
            user_name=student.name or UNKNOWN_STUDENT_NAME,
            check_in_time=at,
            notes=notes,
        )

    def _roster_entries(self, course_id: str, *, at: datetime) -> list[RosterEntry]:
        return [self._entry_for(s, at=at) for s in self._enrollments.roster(course_id)]

    # -- lifecycle -------------------------------------------------------

    def _new_code(self, mode: AttendanceMode, now: datetime) -> str:
        if mode == AttendanceMode.MANUAL:
            return f"{MANUAL_CODE_PREFIX}{int(now.timestamp() * 1000)}"
        if mode == AttendanceMode.QRCODE:
            return f"{QR_CODE_PREFIX}{int(now.timestamp() * 1000)}"
        low = 10 ** (SESSION_CODE_DIGITS - 1)
        return str(self._rng.randint(low, 10 * low - 1))

    def start_session(
        self,
        course_id: str,
        *,
        session_date: date | None = None,
        mode: str = AttendanceMode.CODE.value,
        now: datetime | None = None,
    ) -> StartedSession:
        now = now or now_local()
        mode_enum = require_choice(mode or AttendanceMode.CODE.value, AttendanceMode, "Attendance mode")
        course_name = self._course_name(course_id)

        # everyone enrolled starts out present; admins correct the exceptions
        attended = self._roster_entries(course_id, at=now)

        for attempt in range(_CODE_ATTEMPTS):
            new = NewSession(
                course_id=course_id,
                course_name=course_name,
                session_code=self._new_code(mode_enum, now + timedelta(milliseconds=attempt)),
                mode=mode_enum,
                session_date=session_date or now.date(),
                start_time=now,
                attended=attended,
            )
            try:
                session = self._sessions.create(new, now=now)
                break
            except ConflictError:
                if attempt == _CODE_ATTEMPTS - 1:
                    raise
                logger.warning("session code %s already in use, retrying", new.session_code)

        logger.info(
            "session %s started for course %s (%s, %d seeded)",
            session.session_id,
            course_id,
            mode_enum.value,
            len(attended),
        )
        return StartedSession(session=session, seeded=len(attended))

    def end_session(self, session_id: str, *, now: datetime | None = None) -> AttendanceSession:
        """End an active session. Ending an ended session changes nothing."""
        session = self._sessions.mark_ended(session_id, now=now or now_local()) if session_id else None
        if not session:
            raise NotFoundError("Attendance session not found")
        logger.info("session %s ended", session.session_id)
        return session

    # -- student check-in ------------------------------------------------

    def check_in(self, user: User, code: str, *, now: datetime | None = None) -> CheckInReceipt:
        now = now or now_local()
        code = require_non_empty(code, "Attendance code")

        session = self._sessions.get_active_by_code(code)
        if not session:
            raise InvalidCodeError("Attendance code is invalid or has expired")

        sid = user.student_info.sid if user.student_info else ""
        student = self._students.resolve(sid)
        if not student:
            raise NotFoundError("Student not found")

        found = session.locate(student.student_id)
        if found and found[0] == RosterList.ATTENDED:
            raise AlreadyCheckedInError("You have already checked in")

        entry = self._entry_for(student, at=now)
        if not self._sessions.append_attended_if_absent(session.session_id, entry, now=now):
            latest = self._sessions.get_by_id(session.session_id)
            if latest and latest.is_active:
                raise AlreadyCheckedInError("You have already checked in")
            raise InvalidCodeError("Attendance code is invalid or has expired")

        return CheckInReceipt(
            student_id=student.student_id,
            user_name=student.name,
            check_in_time=now,
            session_code=session.session_code,
            course_name=session.course_name,
        )

    # -- admin roster edits ----------------------------------------------

    def manual_attendance(
        self,
        session_id: str,
        student_ref: str,
        status: str,
        *,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Toggle a student between present and absent. Repeating a call changes nothing."""
        now = now or now_local()
        mark = require_choice(status, AttendanceMark, "Status")
        if mark == AttendanceMark.EXCUSED:
            raise ValidationError("Status must be one of: present, absent")

        self.get_session(session_id)
        student = self._students.get_student(student_ref)
        target = RosterList.for_mark(mark)
        entry = self._entry_for(student, at=now if target == RosterList.ATTENDED else None)

        session = self._sessions.toggle_student(session_id, entry, target, now=now)
        if not session:
            raise NotFoundError("Attendance session not found")
        return session

    def mark_all_present(self, session_id: str, *, now: datetime | None = None) -> MarkAllResult:
        now = now or now_local()
        session = self.get_session(session_id)

        # fresh roster lookup, independent of what the session lists hold
        entries = self._roster_entries(session.course_id, at=now)
        outcome = self._sessions.mark_all_present(session_id, entries, now=now)
        if not outcome:
            raise NotFoundError("Attendance session not found")

        _, marked = outcome
        logger.info("session %s: %d of %d students newly marked present", session_id, marked, len(entries))
        return MarkAllResult(marked_count=marked, total_students=len(entries))

    def update_attendance_status(
        self,
        session_id: str,
        student_ref: str,
        status: str,
        *,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        mark = require_choice(status, AttendanceMark, "Status")

        self.get_session(session_id)
        student = self._students.get_student(student_ref)
        target = RosterList.for_mark(mark)
        entry = self._entry_for(
            student,
            at=now if target == RosterList.ATTENDED else None,
            notes=(notes or "").strip(),
        )

        session = self._sessions.place_student(session_id, entry, target, now=now)
        if not session:
            raise NotFoundError("Attendance session not found")
        return session

    # -- random spot check -----------------------------------------------

    def random_selection(
        self,
        course_id: str,
        *,
        target_date: date | None = None,
        now: datetime | None = None,
    ) -> RandomSelection:
        day = target_date or (now or now_local()).date()
        course_name = self._course_name(course_id)

        start, end = day_bounds(day)
        sessions = self._sessions.list_for_course(
            course_id,
            status=SessionStatus.ENDED,
            started_from=start,
            started_before=end,
        )
        if not sessions:
            raise NotFoundError(f"No ended attendance sessions on {day.isoformat()}")

        pool: dict[str, RandomPick] = {}
        for session in sessions:
            for entry in session.attended:
                if entry.student_id not in pool:
                    pool[entry.student_id] = RandomPick(
                        student_id=entry.student_id,
                        user_name=entry.user_name,
                        session_code=session.session_code,
                        check_in_time=entry.check_in_time,
                        notes=entry.notes,
                    )
        if not pool:
            raise NotFoundError(f"No students attended on {day.isoformat()}")

        count = min(RANDOM_SELECTION_SIZE, len(pool))
        chosen = fisher_yates(list(pool.values()), self._rng)[:count]

        directory = self._students.by_student_ids(p.student_id for p in chosen)
        picks = []
        for pick in chosen:
            info = directory.get(pick.student_id)
            picks.append(
                RandomPick(
                    student_id=pick.student_id,
                    user_name=pick.user_name,
                    session_code=pick.session_code,
                    check_in_time=pick.check_in_time,
                    notes=pick.notes,
                    department=info.department if info else "",
                    class_name=info.class_name if info else "",
                    email=(info.email or "") if info else "",
                )
            )

        return RandomSelection(
            picks=tuple(picks),
            total_present_students=len(pool),
            total_sessions=len(sessions),
            selection_date=day,
            course_name=course_name,
        )

    # -- records and stats -----------------------------------------------

    def student_records(self, student_ref: str, *, course_id: str | None = None) -> list[StudentRecord]:
        """Per-session status of one student, newest session first."""
        student = self._students.get_student(student_ref)

        if course_id:
            sessions = self._sessions.list_for_course(course_id)
        else:
            course_ids = {e.course_id for e in self._enrollments.courses_of(student.id)}
            sessions = [s for s in self._sessions.list_all() if s.course_id in course_ids]

        records = []
        for session in sessions:
            found = session.locate(student.student_id)
            which, entry = found if found else (None, None)
            records.append(
                StudentRecord(
                    session_id=session.session_id,
                    course_id=session.course_id,
                    course_name=session.course_name,
                    session_code=session.session_code,
                    session_date=session.session_date,
                    start_time=session.start_time,
                    status=_MARK_FOR_LIST[which] if which else "unmarked",
                    check_in_time=entry.check_in_time if entry else None,
                    notes=entry.notes if entry else "",
                )
            )
        return records

    def course_stats(self, course_id: str, *, session_id: str | None = None) -> CourseStats:
        self._course_name(course_id)
        if session_id:
            session = self.get_session(session_id)
            if session.course_id != course_id:
                raise NotFoundError("Attendance session not found")
            sessions: Sequence[AttendanceSession] = [session]
        else:
            sessions = self._sessions.list_for_course(course_id)

        return CourseStats(
            present=sum(len(s.attended) for s in sessions),
            absent=sum(len(s.absent) for s in sessions),
            excused=sum(len(s.excused) for s in sessions),
            sessions=len(sessions),
        )

    def session_qr_png(self, session_id: str) -> bytes:
        return qr.render_png(self.get_session(session_id).session_code)
