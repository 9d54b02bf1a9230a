"""Tests for user profile, stats and dashboard endpoints."""

from datetime import date, timedelta


class TestUpdateProfile:
    """Tests for PUT /api/users/profile."""

    def test_update_profile(self, client, student):
        response = client.put(
            "/api/users/profile",
            json={
                "firstName": "Samuel",
                "lastName": "Student",
                "bio": "Likes math",
                "studyPreferences": {"pomodoro": 25},
            },
            headers=student["headers"],
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["first_name"] == "Samuel"
        assert data["bio"] == "Likes math"
        assert data["study_preferences"] == {"pomodoro": 25}

    def test_names_required(self, client, student):
        response = client.put("/api/users/profile", json={"bio": "x"}, headers=student["headers"])
        assert response.status_code == 400

    def test_requires_token(self, client):
        response = client.put("/api/users/profile", json={"firstName": "A", "lastName": "B"})
        assert response.status_code == 401


class TestUserStats:
    """Tests for GET /api/users/stats."""

    def test_empty_stats(self, client, student):
        data = client.get("/api/users/stats", headers=student["headers"]).json()["data"]
        assert data == {
            "total_study_sessions": 0,
            "total_study_minutes": 0,
            "total_quiz_submissions": 0,
            "average_quiz_score": 0.0,
            "total_flashcard_sets": 0,
            "study_streak": 0,
        }

    def test_stats_with_activity(self, client, student):
        client.post(
            "/api/progress/sessions",
            json={"subject": "Math", "duration_minutes": 40},
            headers=student["headers"],
        )
        client.post("/api/flashcards/sets", json={"title": "Set", "userId": student["id"]})

        data = client.get("/api/users/stats", headers=student["headers"]).json()["data"]

        assert data["total_study_sessions"] == 1
        assert data["total_study_minutes"] == 40
        assert data["total_flashcard_sets"] == 1
        assert data["study_streak"] == 1

    def test_planned_sessions_excluded(self, client, student):
        """Incomplete sessions count neither minutes nor streak days."""
        for day, minutes in ((date.today() + timedelta(days=1), 120), (date.today(), 60)):
            client.post(
                "/api/study-sessions/",
                json={
                    "userId": student["id"],
                    "subject": "Physics",
                    "date": day.isoformat(),
                    "duration": minutes,
                },
            )

        data = client.get("/api/users/stats", headers=student["headers"]).json()["data"]

        assert data["total_study_sessions"] == 0
        assert data["total_study_minutes"] == 0
        assert data["study_streak"] == 0


class TestDashboard:
    """Tests for GET /api/users/dashboard."""

    def test_dashboard(self, client, student, quiz):
        tomorrow = (date.today() + timedelta(days=2)).isoformat()
        client.post(
            "/api/study-sessions/",
            json={"userId": student["id"], "subject": "Physics", "date": tomorrow, "time": "10:00"},
        )
        client.post(
            "/api/study-sessions/",
            json={"userId": student["id"], "subject": "History", "date": "2000-01-01"},
        )
        client.post(
            "/api/quiz-taking/submit",
            json={"quizId": quiz["id"], "studentId": student["id"], "answers": []},
        )

        data = client.get("/api/users/dashboard", headers=student["headers"]).json()["data"]

        assert len(data["recent_sessions"]) == 2
        assert [s["subject"] for s in data["upcoming_sessions"]] == ["Physics"]
        assert data["recent_submissions"][0]["quiz_title"] == "Mixed quiz"
