from __future__ import annotations

from datetime import timedelta

import pytest

from course_attendance.attendance.model import NewSession, RosterEntry
from course_attendance.attendance.mongo_session_repository import MongoSessionRepository
from course_attendance.core.enums import AttendanceMode, RosterList, SessionStatus
from course_attendance.core.exceptions import ConflictError

STUDENTS = ["S001", "S002", "S003", "S004", "S005"]


def _entry(sid, at=None, notes=""):
    return RosterEntry(student_id=sid, user_name=f"Student {sid[-1]}", check_in_time=at, notes=notes)


def _ids(entries):
    return [e.student_id for e in entries]


def _assert_disjoint(session):
    attended, absent, excused = set(_ids(session.attended)), set(_ids(session.absent)), set(_ids(session.excused))
    assert not attended & absent
    assert not attended & excused
    assert not absent & excused


@pytest.fixture
def repo(mongo_conn):
    return MongoSessionRepository(mongo_conn)


@pytest.fixture
def session(repo, fixed_now):
    return repo.create(
        NewSession(
            course_id="course-1",
            course_name="Data Structures",
            session_code="123456",
            mode=AttendanceMode.CODE,
            session_date=fixed_now.date(),
            start_time=fixed_now,
            attended=[_entry(sid, fixed_now) for sid in STUDENTS],
        ),
        now=fixed_now,
    )


def test_create_and_read_back(repo, session, fixed_now):
    loaded = repo.get_by_id(session.session_id)

    assert _ids(loaded.attended) == STUDENTS
    assert loaded.attended[0].check_in_time == fixed_now
    assert loaded.session_date == fixed_now.date()
    assert loaded.status == SessionStatus.ACTIVE
    assert repo.get_active_by_code("123456").session_id == session.session_id


def test_duplicate_session_code_conflicts(repo, session, fixed_now):
    with pytest.raises(ConflictError):
        repo.create(
            NewSession(
                course_id="course-2",
                course_name="Algorithms",
                session_code="123456",
                mode=AttendanceMode.CODE,
                session_date=fixed_now.date(),
                start_time=fixed_now,
            ),
            now=fixed_now,
        )


def test_check_in_refused_when_already_attended(repo, session, fixed_now):
    assert repo.append_attended_if_absent(session.session_id, _entry("S001", fixed_now), now=fixed_now) is False

    assert _ids(repo.get_by_id(session.session_id).attended) == STUDENTS


def test_check_in_moves_absent_student_to_attended(repo, session, fixed_now):
    later = fixed_now + timedelta(minutes=5)
    repo.toggle_student(session.session_id, _entry("S002"), RosterList.ABSENT, now=fixed_now)

    assert repo.append_attended_if_absent(session.session_id, _entry("S002", later), now=later) is True

    current = repo.get_by_id(session.session_id)
    assert _ids(current.absent) == []
    assert _ids(current.attended) == ["S001", "S003", "S004", "S005", "S002"]
    assert current.attended[-1].check_in_time == later
    _assert_disjoint(current)


def test_check_in_refused_after_end(repo, session, fixed_now):
    repo.toggle_student(session.session_id, _entry("S003"), RosterList.ABSENT, now=fixed_now)
    repo.mark_ended(session.session_id, now=fixed_now)

    assert repo.append_attended_if_absent(session.session_id, _entry("S003", fixed_now), now=fixed_now) is False
    assert repo.get_active_by_code("123456") is None


def test_mark_ended_keeps_first_end_time(repo, session, fixed_now):
    first = repo.mark_ended(session.session_id, now=fixed_now + timedelta(hours=1))
    second = repo.mark_ended(session.session_id, now=fixed_now + timedelta(hours=2))

    assert first.status == SessionStatus.ENDED
    assert second.end_time == fixed_now + timedelta(hours=1)


def test_toggle_is_idempotent_and_keeps_lists_disjoint(repo, session, fixed_now):
    once = repo.toggle_student(session.session_id, _entry("S004"), RosterList.ABSENT, now=fixed_now)
    twice = repo.toggle_student(session.session_id, _entry("S004"), RosterList.ABSENT, now=fixed_now)

    assert _ids(once.absent) == ["S004"]
    assert _ids(twice.absent) == ["S004"]
    assert "S004" not in _ids(twice.attended)
    _assert_disjoint(twice)

    back = repo.toggle_student(
        session.session_id, _entry("S004", fixed_now + timedelta(minutes=9)), RosterList.ATTENDED, now=fixed_now
    )
    assert _ids(back.absent) == []
    assert _ids(back.attended)[-1] == "S004"
    _assert_disjoint(back)


def test_toggle_present_keeps_existing_check_in_time(repo, session, fixed_now):
    updated = repo.toggle_student(
        session.session_id, _entry("S001", fixed_now + timedelta(hours=1)), RosterList.ATTENDED, now=fixed_now
    )

    assert updated.attended[0].check_in_time == fixed_now
    assert _ids(updated.attended) == STUDENTS


def test_place_moves_student_between_lists(repo, session, fixed_now):
    excused = repo.place_student(session.session_id, _entry("S005", notes="medical"), RosterList.EXCUSED, now=fixed_now)

    assert _ids(excused.excused) == ["S005"]
    assert excused.excused[0].notes == "medical"
    assert "S005" not in _ids(excused.attended)
    _assert_disjoint(excused)

    absent = repo.place_student(session.session_id, _entry("S005", notes="no show"), RosterList.ABSENT, now=fixed_now)

    assert _ids(absent.absent) == ["S005"]
    assert absent.absent[0].notes == "no show"
    assert _ids(absent.excused) == []
    _assert_disjoint(absent)


def test_mark_all_present_reports_newly_added(repo, session, fixed_now):
    repo.toggle_student(session.session_id, _entry("S001"), RosterList.ABSENT, now=fixed_now)
    repo.place_student(session.session_id, _entry("S002", notes="trip"), RosterList.EXCUSED, now=fixed_now)
    later = fixed_now + timedelta(minutes=30)

    updated, added = repo.mark_all_present(session.session_id, [_entry(sid, later) for sid in STUDENTS], now=later)

    assert added == 2
    stored = repo.get_by_id(session.session_id)
    assert sorted(_ids(stored.attended)) == STUDENTS
    assert _ids(stored.absent) == [] and _ids(stored.excused) == []
    assert _ids(updated.attended) == _ids(stored.attended)
    assert {e.student_id: e.check_in_time for e in stored.attended}["S003"] == fixed_now


def test_mark_all_present_when_everyone_attended(repo, session, fixed_now):
    _, added = repo.mark_all_present(session.session_id, [_entry(sid, fixed_now) for sid in STUDENTS], now=fixed_now)

    assert added == 0
    assert _ids(repo.get_by_id(session.session_id).attended) == STUDENTS


def test_updates_on_unknown_session(repo, fixed_now):
    assert repo.get_by_id("not-an-object-id") is None
    assert repo.toggle_student("0" * 24, _entry("S001"), RosterList.ABSENT, now=fixed_now) is None
    assert repo.mark_all_present("0" * 24, [], now=fixed_now) is None
    assert repo.append_attended_if_absent("0" * 24, _entry("S001"), now=fixed_now) is False
