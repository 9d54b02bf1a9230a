"""Tests for study goal endpoints."""

import pytest


@pytest.fixture
def goal(client, student):
    response = client.post(f"/api/goals/{student['id']}", json={"title": "  Finish chapter 3  "})
    assert response.status_code == 201
    return response.json()["data"]


class TestGoals:
    """Tests for /api/goals."""

    def test_create_trims_title(self, goal):
        assert goal["title"] == "Finish chapter 3"
        assert goal["completed"] is False

    def test_blank_title_rejected(self, client, student):
        response = client.post(f"/api/goals/{student['id']}", json={"title": "   "})
        assert response.status_code == 400

    def test_list(self, client, student, goal):
        response = client.get(f"/api/goals/{student['id']}")
        assert [g["id"] for g in response.json()["data"]] == [goal["id"]]

    def test_update(self, client, goal):
        response = client.put(f"/api/goals/{goal['id']}", json={"completed": True})
        assert response.json()["data"]["completed"] is True

    def test_toggle_twice(self, client, goal):
        first = client.patch(f"/api/goals/{goal['id']}/toggle")
        second = client.patch(f"/api/goals/{goal['id']}/toggle")
        assert first.json()["data"]["completed"] is True
        assert second.json()["data"]["completed"] is False

    def test_delete(self, client, student, goal):
        assert client.delete(f"/api/goals/{goal['id']}").status_code == 200
        assert client.get(f"/api/goals/{student['id']}").json()["data"] == []

    def test_delete_missing(self, client):
        response = client.delete("/api/goals/missing")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Goal not found"}
