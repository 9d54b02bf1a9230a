"""Tests for class and enrollment endpoints."""

import re


def _join(client, student, class_code):
    return client.post(
        f"/api/classes/students/{student['id']}/join-class",
        json={"classCode": class_code},
    )


class TestCreateClass:
    """Tests for POST /api/classes/{teacher_id}."""

    def test_create_class_generates_code(self, class_row, teacher):
        assert re.fullmatch(r"[A-Z0-9]{6}", class_row["class_code"])
        assert class_row["teacher_id"] == teacher["id"]
        assert class_row["name"] == "Algebra I"

    def test_create_class_missing_grade_level(self, client, teacher):
        response = client.post(
            f"/api/classes/{teacher['id']}", json={"name": "X", "subject": "Math"}
        )
        assert response.status_code == 400
        assert "gradeLevel" in response.json()["message"]


class TestTeacherClasses:
    """Tests for teacher-side class management."""

    def test_list_classes_with_student_count(self, client, teacher, student, class_row):
        _join(client, student, class_row["class_code"])

        response = client.get(f"/api/classes/{teacher['id']}")

        assert response.status_code == 200
        classes = response.json()["data"]
        assert len(classes) == 1
        assert classes[0]["student_count"] == 1

    def test_get_class(self, client, teacher, class_row):
        response = client.get(f"/api/classes/{teacher['id']}/{class_row['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["student_count"] == 0

    def test_get_class_of_other_teacher(self, client, make_user, class_row):
        other = make_user(role="teacher")
        response = client.get(f"/api/classes/{other['id']}/{class_row['id']}")
        assert response.status_code == 404
        assert response.json()["message"] == "Class not found"

    def test_update_class(self, client, teacher, class_row):
        response = client.put(
            f"/api/classes/{teacher['id']}/{class_row['id']}",
            json={"name": "Algebra II", "room": "B12"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Algebra II"
        assert data["room"] == "B12"
        assert data["subject"] == "Math"

    def test_delete_class(self, client, teacher, class_row):
        response = client.delete(f"/api/classes/{teacher['id']}/{class_row['id']}")
        assert response.status_code == 200

        assert client.get(f"/api/classes/{teacher['id']}/{class_row['id']}").status_code == 404

    def test_generate_new_code(self, client, teacher, class_row):
        response = client.post(f"/api/classes/{teacher['id']}/{class_row['id']}/generate-code")
        assert response.status_code == 200
        new_code = response.json()["data"]["class_code"]
        assert re.fullmatch(r"[A-Z0-9]{6}", new_code)
        assert new_code != class_row["class_code"]

    def test_students_and_remove(self, client, teacher, student, class_row):
        _join(client, student, class_row["class_code"])
        base = f"/api/classes/{teacher['id']}/{class_row['id']}/students"

        students = client.get(base).json()["data"]
        assert [s["id"] for s in students] == [student["id"]]
        assert students[0]["first_name"] == "Sam"

        response = client.delete(f"{base}/{student['id']}")
        assert response.status_code == 200
        assert client.get(base).json()["data"] == []


class TestJoinClass:
    """Tests for POST /api/classes/students/{student_id}/join-class."""

    def test_unknown_code_creates_nothing(self, client, service, student, class_row):
        response = _join(client, student, "NO-SUCH")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert service.select("class_students") == []

    def test_join_twice(self, client, service, student, class_row):
        first = _join(client, student, class_row["class_code"])
        second = _join(client, student, class_row["class_code"])

        assert first.status_code == 201
        assert first.json()["message"] == "Successfully joined class"
        assert second.status_code == 400
        assert "already enrolled" in second.json()["message"]
        assert len(service.select("class_students")) == 1

    def test_student_classes(self, client, student, class_row):
        _join(client, student, class_row["class_code"])

        response = client.get(f"/api/classes/students/{student['id']}/classes")

        classes = response.json()["data"]
        assert len(classes) == 1
        assert classes[0]["id"] == class_row["id"]
        assert classes[0]["teacher"]["first_name"] == "Tina"
        assert classes[0]["enrolled_at"]

    def test_student_without_classes(self, client, student):
        response = client.get(f"/api/classes/students/{student['id']}/classes")
        assert response.json()["data"] == []


class TestClassmates:
    """Tests for GET /api/classes/{student_id}/{class_id}/classmates."""

    def test_not_enrolled(self, client, student, class_row):
        response = client.get(f"/api/classes/{student['id']}/{class_row['id']}/classmates")
        assert response.status_code == 403

    def test_classmates_sorted_and_exclude_caller(self, client, make_user, student, class_row):
        zoe = make_user(first_name="zoe")
        adam = make_user(first_name="Adam")
        for user in (student, zoe, adam):
            _join(client, user, class_row["class_code"])

        response = client.get(f"/api/classes/{student['id']}/{class_row['id']}/classmates")

        assert response.status_code == 200
        names = [c["first_name"] for c in response.json()["data"]]
        assert names == ["Adam", "zoe"]
