"""Tests for flashcard endpoints."""

import pytest


@pytest.fixture
def flashcard_set(client, student):
    response = client.post(
        "/api/flashcards/sets",
        json={"title": "Capitals", "subject": "Geography", "userId": student["id"]},
    )
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def cards(client, flashcard_set):
    created = []
    for question, answer in [("France", "Paris"), ("Spain", "Madrid"), ("Italy", "Rome")]:
        response = client.post(
            "/api/flashcards/cards",
            json={"question": question, "answer": answer, "flashcardSetId": flashcard_set["id"]},
        )
        assert response.status_code == 201
        created.append(response.json()["data"])
    return created


class TestSets:
    """Tests for flashcard set endpoints."""

    def test_user_sets_include_cards(self, client, student, flashcard_set, cards):
        response = client.get(f"/api/flashcards/users/{student['id']}/sets")

        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["title"] == "Capitals"
        assert [c["question"] for c in data[0]["flashcards"]] == ["France", "Spain", "Italy"]

    def test_get_set(self, client, flashcard_set, cards):
        response = client.get(f"/api/flashcards/sets/{flashcard_set['id']}")
        assert len(response.json()["data"]["flashcards"]) == 3

    def test_get_missing_set(self, client):
        assert client.get("/api/flashcards/sets/missing").status_code == 404

    def test_update_set(self, client, flashcard_set):
        response = client.put(
            f"/api/flashcards/sets/{flashcard_set['id']}", json={"title": "World capitals"}
        )
        assert response.json()["data"]["title"] == "World capitals"
        assert response.json()["data"]["subject"] == "Geography"

    def test_update_set_rejects_null_title(self, client, flashcard_set):
        response = client.put(f"/api/flashcards/sets/{flashcard_set['id']}", json={"title": None})
        assert response.status_code == 400
        assert client.get(f"/api/flashcards/sets/{flashcard_set['id']}").json()["data"]["title"] == "Capitals"

    def test_delete_set_removes_cards(self, client, service, flashcard_set, cards):
        response = client.delete(f"/api/flashcards/sets/{flashcard_set['id']}")
        assert response.status_code == 200
        assert service.select("flashcards") == []
        assert client.get(f"/api/flashcards/sets/{flashcard_set['id']}").status_code == 404


class TestCards:
    """Tests for flashcard endpoints."""

    def test_card_for_missing_set(self, client):
        response = client.post(
            "/api/flashcards/cards",
            json={"question": "Q", "answer": "A", "flashcardSetId": "missing"},
        )
        assert response.status_code == 404

    def test_update_card(self, client, cards):
        response = client.put(f"/api/flashcards/cards/{cards[0]['id']}", json={"answer": "Paris!"})
        data = response.json()["data"]
        assert data["answer"] == "Paris!"
        assert data["question"] == "France"

    @pytest.mark.parametrize("body", [{"question": None}, {"answer": None}])
    def test_update_card_rejects_null(self, client, cards, body):
        response = client.put(f"/api/flashcards/cards/{cards[0]['id']}", json=body)
        assert response.status_code == 400

    def test_delete_card(self, client, flashcard_set, cards):
        assert client.delete(f"/api/flashcards/cards/{cards[0]['id']}").status_code == 200
        remaining = client.get(f"/api/flashcards/sets/{flashcard_set['id']}").json()["data"]
        assert len(remaining["flashcards"]) == 2

    def test_delete_missing_card(self, client):
        assert client.delete("/api/flashcards/cards/missing").status_code == 404


class TestStudy:
    """Tests for POST /api/flashcards/study."""

    def test_study_in_order(self, client, flashcard_set, cards):
        response = client.post(
            "/api/flashcards/study", json={"setId": flashcard_set["id"], "shuffle": False}
        )
        data = response.json()["data"]
        assert data["total"] == 3
        assert [c["id"] for c in data["flashcards"]] == [c["id"] for c in cards]

    def test_study_shuffled_keeps_cards(self, client, flashcard_set, cards):
        response = client.post("/api/flashcards/study", json={"setId": flashcard_set["id"]})
        studied = response.json()["data"]["flashcards"]
        assert sorted(c["id"] for c in studied) == sorted(c["id"] for c in cards)

    def test_study_missing_set(self, client):
        assert client.post("/api/flashcards/study", json={"setId": "missing"}).status_code == 404
