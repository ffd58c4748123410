from __future__ import annotations

import pytest

from course_attendance.main import create_app


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_container(app):
    return app.extensions["container"]


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    resp = client.post(
        "/api/v1/auth/register",
        json={"userName": "teacher", "password": "secret123", "role": "admin"},
    )
    return _bearer(resp.get_json()["body"]["token"])


@pytest.fixture
def student_headers(client):
    resp = client.post(
        "/api/v1/auth/register",
        json={
            "userName": "S001",
            "password": "secret123",
            "role": "student",
            "studentInfo": {"sid": "S001", "name": "Student 1"},
        },
    )
    return _bearer(resp.get_json()["body"]["token"])
