"""Pure roster edits on an AttendanceSession.

Every function returns a new session and keeps each student id in at most
one list. The in-memory repository applies these under its lock and the
Mongo repository mirrors them as single-document updates.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Iterable

from ..core.enums import RosterList
from .model import AttendanceSession, RosterEntry


def _ids(entries: Iterable[RosterEntry]) -> set[str]:
    return {e.student_id for e in entries}


def _drop(entries: Iterable[RosterEntry], student_id: str) -> tuple[RosterEntry, ...]:
    return tuple(e for e in entries if e.student_id != student_id)


def is_consistent(session: AttendanceSession) -> bool:
    """True when no student id shows up twice across the three lists."""
    seen: set[str] = set()
    for which in RosterList:
        for entry in session.entries(which):
            if entry.student_id in seen:
                return False
            seen.add(entry.student_id)
    return True


def append_attended(session: AttendanceSession, entry: RosterEntry, *, now: datetime) -> tuple[AttendanceSession, bool]:
    """Add ``entry`` to attended unless already there; False when it was."""

    if entry.student_id in _ids(session.attended):
        return session, False
    updated = dataclasses.replace(
        session,
        attended=session.attended + (entry,),
        absent=_drop(session.absent, entry.student_id),
        excused=_drop(session.excused, entry.student_id),
        updated_at=now,
    )
    return updated, True


def place(session: AttendanceSession, entry: RosterEntry, target: RosterList, *, now: datetime) -> AttendanceSession:
    """Remove the student from all lists, then insert ``entry`` into ``target``."""

    lists = {which: _drop(session.entries(which), entry.student_id) for which in RosterList}
    lists[target] = lists[target] + (entry,)
    return dataclasses.replace(session, updated_at=now, **{w.value: v for w, v in lists.items()})


def toggle(session: AttendanceSession, entry: RosterEntry, target: RosterList, *, now: datetime) -> AttendanceSession:
    """Move the student into ``target``; an existing entry there is kept as is."""

    lists = {}
    for which in RosterList:
        current = session.entries(which)
        if which != target:
            lists[which] = _drop(current, entry.student_id)
        elif entry.student_id in _ids(current):
            lists[which] = current
        else:
            lists[which] = current + (entry,)
    return dataclasses.replace(session, updated_at=now, **{w.value: v for w, v in lists.items()})


def mark_all_present(
    session: AttendanceSession, entries: Iterable[RosterEntry], *, now: datetime
) -> tuple[AttendanceSession, int]:
    """Empty absent/excused and append every missing student to attended.

    Returns the new session and the number of students newly added.
    """
    present = _ids(session.attended)
    added = []
    for entry in entries:
        if entry.student_id not in present:
            present.add(entry.student_id)
            added.append(entry)
    updated = dataclasses.replace(
        session,
        attended=session.attended + tuple(added),
        absent=(),
        excused=(),
        updated_at=now,
    )
    return updated, len(added)
