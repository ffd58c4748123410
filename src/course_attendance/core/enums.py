from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for route authorization."""

    ADMIN = "admin"
    STUDENT = "student"


class SessionStatus(str, Enum):
    """Lifecycle of an attendance session: ACTIVE -> ENDED, never back."""

    ACTIVE = "active"
    ENDED = "ended"


class AttendanceMode(str, Enum):
    """How the session code is handed out to students."""

    CODE = "code"
    MANUAL = "manual"
    QRCODE = "qrcode"


class AttendanceMark(str, Enum):
    """Target status for roster edits."""

    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"


class RosterList(str, Enum):
    """The three roster lists of a session, one per mark."""

    ATTENDED = "attended"
    ABSENT = "absent"
    EXCUSED = "excused"

    @classmethod
    def for_mark(cls, mark: AttendanceMark) -> "RosterList":
        return {
            AttendanceMark.PRESENT: cls.ATTENDED,
            AttendanceMark.ABSENT: cls.ABSENT,
            AttendanceMark.EXCUSED: cls.EXCUSED,
        }[mark]
