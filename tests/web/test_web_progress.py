"""Tests for progress endpoints."""

from datetime import date, timedelta


def _log(client, user, subject="Math", minutes=30):
    return client.post(
        "/api/progress/sessions",
        json={"subject": subject, "duration_minutes": minutes},
        headers=user["headers"],
    )


class TestProgressSessions:
    """Tests for /api/progress/sessions."""

    def test_log_session(self, client, student):
        response = _log(client, student)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user_id"] == student["id"]
        assert data["duration"] == 30
        assert data["completed"] is True
        assert data["date"]

    def test_requires_token(self, client):
        response = client.post("/api/progress/sessions", json={"subject": "Math", "duration_minutes": 5})
        assert response.status_code == 401

    def test_list_filtered_by_subject(self, client, student):
        _log(client, student, "Math")
        _log(client, student, "Biology")

        response = client.get(
            "/api/progress/sessions", params={"subject": "Biology"}, headers=student["headers"]
        )

        assert [s["subject"] for s in response.json()["data"]] == ["Biology"]

    def test_list_only_own(self, client, student, make_user):
        other = make_user()
        _log(client, other)
        response = client.get("/api/progress/sessions", headers=student["headers"])
        assert response.json()["data"] == []

    def test_list_ordered_by_session_date(self, client, student):
        _log(client, student, "Math")
        client.post(
            "/api/study-sessions/",
            json={"userId": student["id"], "subject": "History", "date": "2000-01-01"},
        )

        response = client.get("/api/progress/sessions", headers=student["headers"])

        assert [s["subject"] for s in response.json()["data"]] == ["Math", "History"]

    def test_list_date_range(self, client, student):
        _log(client, student)
        response = client.get(
            "/api/progress/sessions",
            params={"start_date": "2000-01-01", "end_date": "2000-12-31"},
            headers=student["headers"],
        )
        assert response.json()["data"] == []


class TestProgressStats:
    """Tests for GET /api/progress/stats."""

    def test_week_stats(self, client, student):
        _log(client, student, "Math", 30)
        _log(client, student, "Math", 20)
        _log(client, student, "Biology", 15)

        response = client.get("/api/progress/stats", params={"period": "week"}, headers=student["headers"])

        data = response.json()["data"]
        assert data["period"] == "week"
        assert data["total_study_sessions"] == 3
        assert data["total_study_minutes"] == 65
        assert data["completed_quizzes"] == 0
        assert data["average_quiz_score"] == 0.0
        assert data["study_sessions_by_subject"] == {"Math": 2, "Biology": 1}

    def test_default_period(self, client, student):
        response = client.get("/api/progress/stats", headers=student["headers"])
        assert response.json()["data"]["period"] == "week"

    def test_unknown_period(self, client, student):
        response = client.get("/api/progress/stats", params={"period": "decade"}, headers=student["headers"])
        assert response.status_code == 400
        assert "Unknown period" in response.json()["message"]

    def test_planned_sessions_not_counted(self, client, student):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        client.post(
            "/api/study-sessions/",
            json={"userId": student["id"], "subject": "Physics", "date": tomorrow, "duration": 120},
        )
        client.post(
            "/api/study-sessions/",
            json={"userId": student["id"], "subject": "Physics", "date": date.today().isoformat(), "duration": 60},
        )
        _log(client, student, "Math", 25)

        data = client.get("/api/progress/stats", headers=student["headers"]).json()["data"]

        assert data["total_study_sessions"] == 1
        assert data["total_study_minutes"] == 25

    def test_window_uses_session_date(self, client, student):
        old = client.post(
            "/api/study-sessions/",
            json={"userId": student["id"], "subject": "History", "date": "2000-01-01", "duration": 50},
        ).json()["data"]
        client.put(f"/api/study-sessions/{old['id']}", json={"completed": True})

        week = client.get("/api/progress/stats", headers=student["headers"]).json()["data"]
        assert week["total_study_sessions"] == 0
