from __future__ import annotations

import random
from datetime import datetime

from course_attendance.attendance import roster
from course_attendance.attendance.model import AttendanceSession, RosterEntry
from course_attendance.core.enums import AttendanceMode, RosterList, SessionStatus

T0 = datetime(2025, 3, 10, 9, 0, 0)
T1 = datetime(2025, 3, 10, 9, 5, 0)


def _session(**lists) -> AttendanceSession:
    return AttendanceSession(
        session_id="s1",
        course_id="c1",
        course_name="Data Structures",
        session_code="123456",
        mode=AttendanceMode.CODE,
        session_date=T0.date(),
        start_time=T0,
        status=SessionStatus.ACTIVE,
        **lists,
    )


def _entry(sid: str, at=None, notes: str = "") -> RosterEntry:
    return RosterEntry(student_id=sid, user_name=f"Student {sid}", check_in_time=at, notes=notes)


def _ids(entries) -> list[str]:
    return [e.student_id for e in entries]


def test_place_moves_student_into_exactly_one_list():
    s = _session(attended=(_entry("A", T0), _entry("B", T0)), absent=(_entry("C"),))

    s = roster.place(s, _entry("A", notes="medical"), RosterList.EXCUSED, now=T1)

    assert _ids(s.attended) == ["B"]
    assert _ids(s.absent) == ["C"]
    assert _ids(s.excused) == ["A"]
    assert s.excused[0].notes == "medical"
    assert roster.is_consistent(s)


def test_toggle_same_target_twice_is_idempotent():
    s = _session(attended=(_entry("A", T0),))

    once = roster.toggle(s, _entry("A"), RosterList.ABSENT, now=T1)
    twice = roster.toggle(once, _entry("A"), RosterList.ABSENT, now=T1)

    assert once.attended == twice.attended
    assert once.absent == twice.absent
    assert _ids(twice.absent) == ["A"]


def test_toggle_present_keeps_existing_check_in_time():
    s = _session(attended=(_entry("A", T0),))

    s = roster.toggle(s, _entry("A", T1), RosterList.ATTENDED, now=T1)

    assert len(s.attended) == 1
    assert s.attended[0].check_in_time == T0


def test_toggle_clears_excused_entry():
    s = _session(excused=(_entry("A", notes="sick"),))

    s = roster.toggle(s, _entry("A", T1), RosterList.ATTENDED, now=T1)

    assert _ids(s.attended) == ["A"]
    assert s.excused == ()


def test_append_attended_reports_duplicates():
    s = _session(attended=(_entry("A", T0),), absent=(_entry("B"),))

    same, added_a = roster.append_attended(s, _entry("A", T1), now=T1)
    s2, added_b = roster.append_attended(s, _entry("B", T1), now=T1)

    assert added_a is False
    assert same is s
    assert added_b is True
    assert _ids(s2.attended) == ["A", "B"]
    assert s2.absent == ()


def test_mark_all_present_counts_only_new_students():
    s = _session(
        attended=(_entry("A", T0), _entry("B", T0)),
        absent=(_entry("C"),),
        excused=(_entry("D"),),
    )
    enrolled = [_entry(x, T1) for x in "ABCDE"]

    s, added = roster.mark_all_present(s, enrolled, now=T1)

    assert added == 3
    assert _ids(s.attended) == ["A", "B", "C", "D", "E"]
    assert s.absent == () and s.excused == ()
    # existing check-ins keep their original time
    assert s.attended[0].check_in_time == T0


def test_random_edit_sequences_keep_lists_disjoint():
    rng = random.Random(99)
    s = _session(attended=tuple(_entry(x, T0) for x in "ABCDEF"))
    targets = list(RosterList)

    for _ in range(300):
        sid = rng.choice("ABCDEFG")
        target = rng.choice(targets)
        if rng.random() < 0.5:
            s = roster.place(s, _entry(sid, T1), target, now=T1)
        elif target != RosterList.EXCUSED:
            s = roster.toggle(s, _entry(sid, T1), target, now=T1)
        assert roster.is_consistent(s)
