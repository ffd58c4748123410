from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from course_attendance.core.enums import Role
from course_attendance.core.exceptions import AuthenticationError, ConflictError, ValidationError
from course_attendance.users.tokens import TokenIssuer


def test_register_then_login_round_trip(container):
    auth = container.auth_service
    registered = auth.register(
        username="410001",
        password="secret123",
        student_info={"sid": "410001", "name": "Ann", "class": "CS-1A"},
    )

    logged_in = auth.login("410001", "secret123")

    assert logged_in.user.user_id == registered.user.user_id
    assert logged_in.user.role == Role.STUDENT
    assert logged_in.user.student_info.email == "410001@student.test"
    assert auth.user_from_token(logged_in.token).username == "410001"
    assert "password" not in logged_in.to_dict()["user"]


def test_wrong_password_raises(container):
    auth = container.auth_service
    auth.register(username="ann", password="secret123")

    with pytest.raises(AuthenticationError):
        auth.login("ann", "wrong-one")
    with pytest.raises(AuthenticationError):
        auth.login("nobody", "secret123")


def test_duplicate_username_conflicts(container):
    container.auth_service.register(username="ann", password="secret123")

    with pytest.raises(ConflictError):
        container.auth_service.register(username="ann", password="another1")


def test_register_validation(container):
    auth = container.auth_service
    with pytest.raises(ValidationError):
        auth.register(username="ann", password="123")
    with pytest.raises(ValidationError):
        auth.register(username="ann", password="secret123", role="superuser")


def test_admin_cannot_take_a_student_name(container):
    container.student_service.create_student(student_id="S1", name="Ann Lee")

    assert container.auth_service.check_student_name("Ann Lee") is True
    assert container.auth_service.check_student_name("Bob") is False
    with pytest.raises(ValidationError):
        container.auth_service.register(username="Ann Lee", password="secret123", role="admin")


def test_admin_accounts_carry_no_student_info(container):
    result = container.auth_service.register(
        username="teacher", password="secret123", role="admin", student_info={"sid": "X"}
    )

    assert result.user.is_admin
    assert result.user.student_info is None


def test_expired_and_tampered_tokens_are_rejected():
    issuer = TokenIssuer("k1", expires_hours=1)
    old = issuer.issue(user_id="u1", role="admin", now=datetime.now(timezone.utc) - timedelta(hours=2))
    fresh = issuer.issue(user_id="u1", role="admin")

    assert issuer.decode(fresh)["userId"] == "u1"
    with pytest.raises(AuthenticationError):
        issuer.decode(old)
    with pytest.raises(AuthenticationError):
        TokenIssuer("other-key").decode(fresh)
    with pytest.raises(AuthenticationError):
        issuer.decode("not-a-token")
