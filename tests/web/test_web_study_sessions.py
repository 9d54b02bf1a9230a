"""Tests for study session endpoints."""

import pytest


@pytest.fixture
def sessions(client, student):
    created = []
    for date, time in [("2024-05-02", "09:00"), ("2024-05-01", "18:00"), ("2024-05-01", "08:00")]:
        response = client.post(
            "/api/study-sessions/",
            json={
                "userId": student["id"],
                "subject": "Math",
                "date": date,
                "time": time,
                "duration": 45,
                "pomodoroSessions": 2,
            },
        )
        assert response.status_code == 201
        created.append(response.json()["data"])
    return created


class TestStudySessions:
    """Tests for /api/study-sessions."""

    def test_list_ordered_by_date_and_time(self, client, student, sessions):
        response = client.get(f"/api/study-sessions/{student['id']}")
        data = response.json()["data"]
        assert [(s["date"], s["time"]) for s in data] == [
            ("2024-05-01", "08:00"),
            ("2024-05-01", "18:00"),
            ("2024-05-02", "09:00"),
        ]

    def test_new_session_not_completed(self, sessions):
        assert sessions[0]["completed"] is False
        assert sessions[0]["pomodoro_sessions"] == 2

    def test_get_session(self, client, sessions):
        response = client.get(f"/api/study-sessions/session/{sessions[0]['id']}")
        assert response.json()["data"]["date"] == "2024-05-02"

    def test_get_missing_session(self, client):
        assert client.get("/api/study-sessions/session/missing").status_code == 404

    def test_mark_completed(self, client, sessions):
        response = client.put(
            f"/api/study-sessions/{sessions[0]['id']}", json={"completed": True, "notes": "Done"}
        )
        data = response.json()["data"]
        assert data["completed"] is True
        assert data["notes"] == "Done"
        assert data["subject"] == "Math"

    def test_completed_may_not_be_null(self, client, sessions):
        response = client.put(f"/api/study-sessions/{sessions[0]['id']}", json={"completed": None})
        assert response.status_code == 400
        assert "completed" in response.json()["message"]

    def test_delete(self, client, student, sessions):
        assert client.delete(f"/api/study-sessions/{sessions[0]['id']}").status_code == 200
        assert len(client.get(f"/api/study-sessions/{student['id']}").json()["data"]) == 2

    def test_subject_required(self, client, student):
        response = client.post("/api/study-sessions/", json={"userId": student["id"]})
        assert response.status_code == 400
