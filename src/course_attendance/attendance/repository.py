from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RosterList, SessionStatus
from .model import AttendanceSession, NewSession, RosterEntry


class SessionRepository(Protocol):
    """Attendance session storage port.

    Roster changes are expressed per student so that two editors working on
    different students of the same session never overwrite each other. Each
    mutation returns None when the session does not exist.
    """

    def create(self, new: NewSession, *, now: datetime) -> AttendanceSession:
        """Insert an active session; raises ConflictError on a duplicate code."""

        raise NotImplementedError

    def get_by_id(self, session_id: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_active_by_code(self, session_code: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_all(self, *, status: Optional[SessionStatus] = None) -> Sequence[AttendanceSession]:
        """Sessions newest first."""

        raise NotImplementedError

    def list_for_course(
        self,
        course_id: str,
        *,
        status: Optional[SessionStatus] = None,
        started_from: Optional[datetime] = None,
        started_before: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        """Sessions of one course newest first, optionally within [from, before)."""

        raise NotImplementedError

    def mark_ended(self, session_id: str, *, now: datetime) -> Optional[AttendanceSession]:
        """Move an active session to ended; an ended session is returned unchanged."""

        raise NotImplementedError

    def append_attended_if_absent(self, session_id: str, entry: RosterEntry, *, now: datetime) -> bool:
        """Append to attended only if the session is active and the student is not
        already attended. Returns whether the entry was added."""

        raise NotImplementedError

    def place_student(
        self, session_id: str, entry: RosterEntry, target: RosterList, *, now: datetime
    ) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def toggle_student(
        self, session_id: str, entry: RosterEntry, target: RosterList, *, now: datetime
    ) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def mark_all_present(
        self, session_id: str, entries: Sequence[RosterEntry], *, now: datetime
    ) -> Optional[tuple[AttendanceSession, int]]:
        """Returns the updated session and how many students were newly added."""

        raise NotImplementedError
