"""Tests for custom quiz endpoints."""

from uuid import uuid4

from tests.helpers.auth import auth_headers_for
from tests.helpers.seed import create_test_student


def test_quiz_subjects(client, auth_headers_student, history_paper):
    response = client.get("/v1/quiz/subjects", headers=auth_headers_student)

    assert response.status_code == 200
    (subject,) = response.json()
    assert subject["id"] == str(history_paper.subject.id)
    assert subject["exam_category"] == "UPSC"
    assert [t["name"] for t in subject["topics"]] == ["General"]


def test_create_list_and_delete_quiz(client, auth_headers_student, history_paper):
    payload = {
        "title": "Modern history drill",
        "question_count": 20,
        "subject_ids": [str(history_paper.subject.id)],
    }

    created = client.post("/v1/quiz/custom", json=payload, headers=auth_headers_student)
    assert created.status_code == 201
    quiz = created.json()
    assert quiz["duration"] == 15
    assert quiz["subject_ids"] == [str(history_paper.subject.id)]
    assert quiz["topic_ids"] == []

    listed = client.get("/v1/quiz/custom", headers=auth_headers_student).json()
    assert [q["id"] for q in listed] == [quiz["id"]]

    deleted = client.delete(f"/v1/quiz/custom/{quiz['id']}", headers=auth_headers_student)
    assert deleted.status_code == 200
    assert client.get("/v1/quiz/custom", headers=auth_headers_student).json() == []


def test_quiz_needs_a_subject(client, auth_headers_student):
    response = client.post(
        "/v1/quiz/custom", json={"title": "Empty", "subject_ids": []}, headers=auth_headers_student
    )
    assert response.status_code == 422


def test_cannot_delete_someone_elses_quiz(client, db, auth_headers_student, history_paper):
    other = create_test_student(db)
    created = client.post(
        "/v1/quiz/custom",
        json={"title": "Mine", "subject_ids": [str(history_paper.subject.id)]},
        headers=auth_headers_for(other),
    ).json()

    assert client.delete(f"/v1/quiz/custom/{created['id']}", headers=auth_headers_student).status_code == 404
    assert client.delete(f"/v1/quiz/custom/{uuid4()}", headers=auth_headers_student).status_code == 404
