"""Shared fixtures.

Every test gets its own SQLite file under tmp_path; nothing touches
./db or the configured backend.
"""

from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from studyhub.config.app_config import AppConfig, AuthConfig, BackendConfig
from studyhub.db.sqlite_service import SqliteDataService
from studyhub.web.api import create_app

TEST_JWT_SECRET = "test-secret"
DEFAULT_PASSWORD = "secret1"


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "db" / "studyhub.db"


@pytest.fixture
def app_config(db_path) -> AppConfig:
    """Config pointing at the temporary database."""
    return AppConfig(
        backend=BackendConfig(kind="sqlite", sqlite_path=str(db_path)),
        auth=AuthConfig(client_url="http://client.test"),
    )


@pytest.fixture
def service(db_path) -> SqliteDataService:
    return SqliteDataService(db_path, jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def client(service, app_config) -> TestClient:
    """Test client bound to the temporary SQLite service."""
    app = create_app(data_service=service, config=app_config)
    return TestClient(app)


@pytest.fixture
def make_user(client) -> Callable[..., dict[str, Any]]:
    """Register and log in a user; returns id, email and auth headers."""
    counter = {"n": 0}

    def _make_user(
        role: str = "student",
        first_name: str = "Test",
        last_name: str = "User",
        email: str | None = None,
    ) -> dict[str, Any]:
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        register = client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": DEFAULT_PASSWORD,
                "firstName": first_name,
                "lastName": last_name,
                "role": role,
            },
        )
        assert register.status_code == 201, register.text

        login = client.post(
            "/api/auth/login",
            json={"email": email, "password": DEFAULT_PASSWORD},
        )
        assert login.status_code == 200, login.text
        session = login.json()["data"]
        return {
            "id": session["user"]["id"],
            "email": email,
            "access_token": session["access_token"],
            "refresh_token": session["refresh_token"],
            "headers": {"Authorization": f"Bearer {session['access_token']}"},
        }

    return _make_user


@pytest.fixture
def teacher(make_user) -> dict[str, Any]:
    return make_user(role="teacher", first_name="Tina", last_name="Teacher")


@pytest.fixture
def student(make_user) -> dict[str, Any]:
    return make_user(role="student", first_name="Sam", last_name="Student")


@pytest.fixture
def class_row(client, teacher) -> dict[str, Any]:
    """A class owned by `teacher`."""
    response = client.post(
        f"/api/classes/{teacher['id']}",
        json={"name": "Algebra I", "subject": "Math", "gradeLevel": "9"},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def sample_questions() -> list[dict[str, Any]]:
    """One question of each type, 6 points total."""
    return [
        {
            "question": "Capital of France?",
            "type": "multiple_choice",
            "options": [
                {"optionText": "Paris", "isCorrect": True},
                {"optionText": "Lyon", "isCorrect": False},
            ],
            "points": 2,
        },
        {
            "question": "2 + 2 = 4",
            "type": "true_false",
            "correctAnswer": "true",
            "points": 1,
        },
        {
            "question": "Largest planet?",
            "type": "short_answer",
            "correctAnswer": "Jupiter",
            "points": 3,
        },
    ]


@pytest.fixture
def quiz(client, class_row, teacher, sample_questions) -> dict[str, Any]:
    """A quiz with the three sample questions."""
    response = client.post(
        f"/api/quizzes/{class_row['id']}",
        json={
            "title": "Mixed quiz",
            "createdBy": teacher["id"],
            "questions": sample_questions,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
