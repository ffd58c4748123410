from __future__ import annotations

import random
import re
from collections import Counter
from datetime import timedelta

import pytest

from course_attendance.attendance.service import fisher_yates
from course_attendance.core.enums import SessionStatus
from course_attendance.core.exceptions import (
    AlreadyCheckedInError,
    InvalidCodeError,
    NotFoundError,
    ValidationError,
)


def _student_user(container, student):
    return container.auth_service.register(
        username=f"user-{student.student_id}",
        password="secret123",
        student_info={"sid": student.student_id, "name": student.name},
    ).user


def _ids(entries) -> set[str]:
    return {e.student_id for e in entries}


def test_start_session_seeds_every_enrolled_student(container, course, students, fixed_now):
    started = container.attendance_service.start_session(course.course_id, mode="code", now=fixed_now)
    s = started.session

    assert started.seeded == 5
    assert len(s.attended) == 5
    assert s.absent == () and s.excused == ()
    assert s.status == SessionStatus.ACTIVE
    assert re.fullmatch(r"\d{6}", s.session_code)
    assert all(e.check_in_time == fixed_now for e in s.attended)
    assert s.course_name == "Data Structures"


def test_start_session_codes_for_manual_and_qr_modes(container, course, students, fixed_now):
    svc = container.attendance_service
    manual = svc.start_session(course.course_id, mode="manual", now=fixed_now).session
    qr = svc.start_session(course.course_id, mode="qrcode", now=fixed_now).session

    ms = int(fixed_now.timestamp() * 1000)
    assert manual.session_code == f"MANUAL_{ms}"
    assert qr.session_code == f"QR_{ms}"


def test_start_session_retries_on_code_collision(container, course, fixed_now):
    svc = container.attendance_service
    first = svc.start_session(course.course_id, mode="manual", now=fixed_now).session
    second = svc.start_session(course.course_id, mode="manual", now=fixed_now).session

    assert first.session_code != second.session_code
    assert second.session_code.startswith("MANUAL_")


def test_start_session_stores_target_date(container, course, fixed_now):
    day = fixed_now.date() + timedelta(days=3)
    s = container.attendance_service.start_session(course.course_id, session_date=day, now=fixed_now).session

    assert s.session_date == day
    assert s.start_time == fixed_now


def test_start_session_rejects_unknown_course_and_mode(container, course):
    svc = container.attendance_service
    with pytest.raises(NotFoundError):
        svc.start_session("missing-course")
    with pytest.raises(ValidationError):
        svc.start_session(course.course_id, mode="carrier-pigeon")


def test_end_session_is_idempotent(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session

    ended = svc.end_session(s.session_id, now=fixed_now + timedelta(minutes=50))
    again = svc.end_session(s.session_id, now=fixed_now + timedelta(minutes=90))

    assert ended.status == SessionStatus.ENDED
    assert again.end_time == fixed_now + timedelta(minutes=50)

    with pytest.raises(NotFoundError):
        svc.end_session("nope")


def test_check_in_with_code_of_ended_session_is_invalid(container, course, students, fixed_now):
    svc = container.attendance_service
    user = _student_user(container, students[0])
    s = svc.start_session(course.course_id, now=fixed_now).session
    svc.end_session(s.session_id, now=fixed_now)

    with pytest.raises(InvalidCodeError):
        svc.check_in(user, s.session_code, now=fixed_now)
    with pytest.raises(InvalidCodeError):
        svc.check_in(user, "000000", now=fixed_now)


def test_seeded_student_check_in_reports_already_checked_in(container, course, students, fixed_now):
    svc = container.attendance_service
    user = _student_user(container, students[0])
    s = svc.start_session(course.course_id, now=fixed_now).session

    with pytest.raises(AlreadyCheckedInError):
        svc.check_in(user, s.session_code, now=fixed_now)


def test_check_in_after_being_marked_absent(container, course, students, fixed_now):
    svc = container.attendance_service
    alice = students[0]
    user = _student_user(container, alice)
    s = svc.start_session(course.course_id, now=fixed_now).session
    svc.manual_attendance(s.session_id, alice.id, "absent", now=fixed_now)

    later = fixed_now + timedelta(minutes=5)
    receipt = svc.check_in(user, s.session_code, now=later)

    assert receipt.student_id == alice.student_id
    assert receipt.check_in_time == later
    assert receipt.course_name == "Data Structures"
    current = svc.get_session(s.session_id)
    assert alice.student_id in _ids(current.attended)
    assert alice.student_id not in _ids(current.absent)

    with pytest.raises(AlreadyCheckedInError):
        svc.check_in(user, s.session_code, now=later)


def test_check_in_needs_a_student_profile(container, course, students, fixed_now):
    svc = container.attendance_service
    admin = container.auth_service.register(username="teacher", password="secret123", role="admin").user
    s = svc.start_session(course.course_id, now=fixed_now).session

    with pytest.raises(NotFoundError):
        svc.check_in(admin, s.session_code, now=fixed_now)


def test_toggle_absent_then_present(container, course, students, fixed_now):
    svc = container.attendance_service
    x = students[2]
    s = svc.start_session(course.course_id, now=fixed_now).session

    after_absent = svc.manual_attendance(s.session_id, x.id, "absent", now=fixed_now + timedelta(minutes=1))
    assert x.student_id in _ids(after_absent.absent)
    assert x.student_id not in _ids(after_absent.attended)

    after_present = svc.manual_attendance(s.session_id, x.id, "present", now=fixed_now + timedelta(minutes=2))
    entry = next(e for e in after_present.attended if e.student_id == x.student_id)
    assert x.student_id not in _ids(after_present.absent)
    assert entry.check_in_time >= s.start_time


def test_toggle_twice_leaves_state_unchanged(container, course, students, fixed_now):
    svc = container.attendance_service
    x = students[1]
    s = svc.start_session(course.course_id, now=fixed_now).session

    once = svc.manual_attendance(s.session_id, x.id, "absent", now=fixed_now)
    twice = svc.manual_attendance(s.session_id, x.id, "absent", now=fixed_now + timedelta(minutes=1))

    assert once.attended == twice.attended
    assert once.absent == twice.absent


def test_toggle_accepts_school_number_and_rejects_excused(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session

    updated = svc.manual_attendance(s.session_id, "S004", "absent", now=fixed_now)
    assert "S004" in _ids(updated.absent)

    with pytest.raises(ValidationError):
        svc.manual_attendance(s.session_id, "S004", "excused")
    with pytest.raises(NotFoundError):
        svc.manual_attendance(s.session_id, "S999", "absent")
    with pytest.raises(NotFoundError):
        svc.manual_attendance("missing", "S004", "absent")


def test_update_status_to_excused_with_note(container, course, students, fixed_now):
    svc = container.attendance_service
    x = students[0]
    s = svc.start_session(course.course_id, now=fixed_now).session
    svc.manual_attendance(s.session_id, x.id, "absent", now=fixed_now)

    updated = svc.update_attendance_status(s.session_id, x.id, "excused", notes="medical", now=fixed_now)

    assert x.student_id not in _ids(updated.attended)
    assert x.student_id not in _ids(updated.absent)
    excused = [e for e in updated.excused if e.student_id == x.student_id]
    assert len(excused) == 1
    assert excused[0].notes == "medical"


def test_mark_all_present_returns_newly_marked_count(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session
    svc.manual_attendance(s.session_id, students[0].id, "absent", now=fixed_now)
    svc.update_attendance_status(s.session_id, students[1].id, "excused", notes="sick", now=fixed_now)

    result = svc.mark_all_present(s.session_id, now=fixed_now + timedelta(minutes=10))

    assert result.marked_count == 2
    assert result.total_students == 5
    current = svc.get_session(s.session_id)
    assert len(current.attended) == 5
    assert current.absent == () and current.excused == ()
    untouched = next(e for e in current.attended if e.student_id == students[4].student_id)
    assert untouched.check_in_time == fixed_now


def test_random_selection_picks_three_distinct_attendees(container, course, students, fixed_now):
    svc = container.attendance_service
    for offset in (0, 60):
        s = svc.start_session(course.course_id, now=fixed_now + timedelta(minutes=offset)).session
        svc.end_session(s.session_id, now=fixed_now + timedelta(minutes=offset + 30))

    selection = svc.random_selection(course.course_id, now=fixed_now)
    picked = [p.student_id for p in selection.picks]

    assert len(picked) == 3
    assert len(set(picked)) == 3
    assert set(picked) <= {s.student_id for s in students}
    assert selection.total_present_students == 5
    assert selection.total_sessions == 2
    assert all(p.department == "Computer Science" for p in selection.picks)


def test_random_selection_returns_everyone_when_fewer_than_three(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session
    for student in students[2:]:
        svc.manual_attendance(s.session_id, student.id, "absent", now=fixed_now)
    svc.end_session(s.session_id, now=fixed_now)

    selection = svc.random_selection(course.course_id, target_date=fixed_now.date())

    assert {p.student_id for p in selection.picks} == {"S001", "S002"}


def test_random_selection_ignores_active_and_other_day_sessions(container, course, students, fixed_now):
    svc = container.attendance_service
    svc.start_session(course.course_id, now=fixed_now)
    yesterday = svc.start_session(course.course_id, now=fixed_now - timedelta(days=1)).session
    svc.end_session(yesterday.session_id, now=fixed_now - timedelta(days=1))

    with pytest.raises(NotFoundError):
        svc.random_selection(course.course_id, now=fixed_now)


def test_random_selection_with_no_attendees(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session
    for student in students:
        svc.manual_attendance(s.session_id, student.id, "absent", now=fixed_now)
    svc.end_session(s.session_id, now=fixed_now)

    with pytest.raises(NotFoundError):
        svc.random_selection(course.course_id, now=fixed_now)


def test_random_selection_reaches_every_attendee(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session
    svc.end_session(s.session_id, now=fixed_now)

    seen = set()
    for _ in range(200):
        seen.update(p.student_id for p in svc.random_selection(course.course_id, now=fixed_now).picks)

    assert seen == {s.student_id for s in students}


def test_random_selection_picks_each_attendee_about_equally(container, course, students, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, now=fixed_now).session
    svc.end_session(s.session_id, now=fixed_now)

    draws = 3000
    counts = Counter()
    for _ in range(draws):
        counts.update(p.student_id for p in svc.random_selection(course.course_id, now=fixed_now).picks)

    # 3 of 5 per draw
    for student in students:
        assert counts[student.student_id] / draws == pytest.approx(0.6, abs=0.05)


def test_fisher_yates_first_slot_is_uniform():
    rng = random.Random(7)
    trials = 5000
    firsts = Counter(fisher_yates(["a", "b", "c", "d", "e"], rng)[0] for _ in range(trials))

    assert set(firsts) == {"a", "b", "c", "d", "e"}
    for n in firsts.values():
        assert n / trials == pytest.approx(0.2, abs=0.03)


def test_fisher_yates_is_a_permutation():
    items = list(range(20))
    shuffled = fisher_yates(items, random.Random(3))

    assert sorted(shuffled) == items
    assert items == list(range(20))


def test_student_records_and_course_stats(container, course, students, fixed_now):
    svc = container.attendance_service
    first = svc.start_session(course.course_id, now=fixed_now).session
    svc.manual_attendance(first.session_id, students[0].id, "absent", now=fixed_now)
    second = svc.start_session(course.course_id, now=fixed_now + timedelta(days=7)).session
    svc.update_attendance_status(second.session_id, students[0].id, "excused", notes="trip", now=fixed_now)

    records = svc.student_records(students[0].student_id)
    assert [r.status for r in records] == ["excused", "absent"]
    assert records[0].notes == "trip"

    stats = svc.course_stats(course.course_id)
    assert stats.to_dict() == {"total": 10, "present": 8, "absent": 1, "excused": 1, "sessions": 2}
    assert svc.course_stats(course.course_id, session_id=first.session_id).absent == 1


def test_session_listings_include_attendance_count(container, course, students, fixed_now):
    svc = container.attendance_service
    a = svc.start_session(course.course_id, now=fixed_now).session
    b = svc.start_session(course.course_id, now=fixed_now + timedelta(hours=1)).session
    svc.end_session(a.session_id, now=fixed_now)

    assert [s.session_id for s in svc.list_all_sessions()] == [b.session_id, a.session_id]
    assert [s.session_id for s in svc.list_active_sessions()] == [b.session_id]
    assert svc.list_all_sessions()[0].to_dict()["attendanceCount"] == 5


def test_session_qr_png(container, course, fixed_now):
    svc = container.attendance_service
    s = svc.start_session(course.course_id, mode="qrcode", now=fixed_now).session

    png = svc.session_qr_png(s.session_id)

    assert png.startswith(b"\x89PNG")
