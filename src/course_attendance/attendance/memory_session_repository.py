from __future__ import annotations

import dataclasses
import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence

from ..core.enums import RosterList, SessionStatus
from ..core.exceptions import ConflictError
from . import roster
from .model import AttendanceSession, NewSession, RosterEntry
from .repository import SessionRepository


class InMemorySessionRepository(SessionRepository):
    def __init__(self):
        self._sessions: Dict[str, AttendanceSession] = {}
        self._lock = threading.Lock()

    def _apply(self, session_id: str, fn: Callable[[AttendanceSession], AttendanceSession]) -> Optional[AttendanceSession]:
        with self._lock:
            session = self._sessions.get(str(session_id))
            if not session:
                return None
            updated = fn(session)
            self._sessions[updated.session_id] = updated
            return updated

    def create(self, new: NewSession, *, now: datetime) -> AttendanceSession:
        with self._lock:
            if any(s.session_code == new.session_code for s in self._sessions.values()):
                raise ConflictError("Session code already in use")
            session = AttendanceSession(
                session_id=uuid.uuid4().hex,
                course_id=new.course_id,
                course_name=new.course_name,
                session_code=new.session_code,
                mode=new.mode,
                session_date=new.session_date,
                start_time=new.start_time,
                status=SessionStatus.ACTIVE,
                attended=tuple(new.attended),
                created_at=now,
                updated_at=now,
            )
            self._sessions[session.session_id] = session
            return session

    def get_by_id(self, session_id: str) -> Optional[AttendanceSession]:
        return self._sessions.get(str(session_id))

    def get_active_by_code(self, session_code: str) -> Optional[AttendanceSession]:
        return next(
            (s for s in self._sessions.values() if s.session_code == session_code and s.is_active),
            None,
        )

    def list_all(self, *, status: Optional[SessionStatus] = None) -> Sequence[AttendanceSession]:
        items = [s for s in self._sessions.values() if status is None or s.status == status]
        return sorted(items, key=lambda s: s.start_time, reverse=True)

    def list_for_course(
        self,
        course_id: str,
        *,
        status: Optional[SessionStatus] = None,
        started_from: Optional[datetime] = None,
        started_before: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        return [
            s
            for s in self.list_all(status=status)
            if s.course_id == course_id
            and (started_from is None or s.start_time >= started_from)
            and (started_before is None or s.start_time < started_before)
        ]

    def mark_ended(self, session_id: str, *, now: datetime) -> Optional[AttendanceSession]:
        def end(session: AttendanceSession) -> AttendanceSession:
            if not session.is_active:
                return session
            return dataclasses.replace(session, status=SessionStatus.ENDED, end_time=now, updated_at=now)

        return self._apply(session_id, end)

    def append_attended_if_absent(self, session_id: str, entry: RosterEntry, *, now: datetime) -> bool:
        with self._lock:
            session = self._sessions.get(str(session_id))
            if not session or not session.is_active:
                return False
            updated, added = roster.append_attended(session, entry, now=now)
            self._sessions[updated.session_id] = updated
            return added

    def place_student(
        self, session_id: str, entry: RosterEntry, target: RosterList, *, now: datetime
    ) -> Optional[AttendanceSession]:
        return self._apply(session_id, lambda s: roster.place(s, entry, target, now=now))

    def toggle_student(
        self, session_id: str, entry: RosterEntry, target: RosterList, *, now: datetime
    ) -> Optional[AttendanceSession]:
        return self._apply(session_id, lambda s: roster.toggle(s, entry, target, now=now))

    def mark_all_present(
        self, session_id: str, entries: Sequence[RosterEntry], *, now: datetime
    ) -> Optional[tuple[AttendanceSession, int]]:
        with self._lock:
            session = self._sessions.get(str(session_id))
            if not session:
                return None
            updated, added = roster.mark_all_present(session, entries, now=now)
            self._sessions[updated.session_id] = updated
            return updated, added
