from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import SessionStatusEnum
from app.core.security import create_access_token
from app.crud.learning_session import learning_session as crud_learning_session
from tests.helpers.asserts import api_call, error_code


def create_session(client, headers, subject, topic, total=3, **extra):
    payload = {"subject_id": subject.id, "topic_id": topic.id, "total_questions": total, **extra}
    return client.post("/sessions/", headers=headers, json=payload)


class TestSessionEndpoints:

    def test_create_and_read_session(self, client: TestClient, student_token, auth_headers, subject, topic, question_factory):
        for _ in range(4):
            question_factory()
        headers = auth_headers(student_token)

        r = create_session(client, headers, subject, topic, total=3)
        assert r.status_code == 201, r.text
        created = r.json()["data"]
        assert created["status"] == SessionStatusEnum.IN_PROGRESS.value
        assert len(created["question_ids"]) == 3
        assert created["topic_ids"] == [topic.id]

        r = api_call(client, "GET", f"/sessions/{created['id']}", headers=headers)
        assert r.json()["data"]["question_ids"] == created["question_ids"]

    def test_guest_session(self, client: TestClient, subject, topic, question_factory):
        question_factory()
        r = create_session(client, {}, subject, topic, total=5)
        assert r.status_code == 201, r.text
        session_id = r.json()["data"]["id"]
        assert session_id.startswith("guest_")

        r = api_call(client, "GET", f"/sessions/{session_id}")
        assert r.json()["data"]["user_id"] is None
        r = client.patch(f"/sessions/{session_id}", json={"last_question_index": 0})
        assert r.status_code == 400

    def test_timed_session_needs_limit(self, client: TestClient, student_token, auth_headers, subject, topic):
        r = create_session(client, auth_headers(student_token), subject, topic, mode="timed")
        assert r.status_code == 422
        assert error_code(r) == "VALIDATION_ERROR"

    def test_unknown_subject(self, client: TestClient, student_token, auth_headers, topic):
        r = client.post("/sessions/", headers=auth_headers(student_token), json={
            "subject_id": 999999, "topic_id": topic.id, "total_questions": 3,
        })
        assert r.status_code == 404
        assert error_code(r) == "NOT_FOUND"

    def test_record_answers_camel_case(self, client: TestClient, student_token, auth_headers, subject, topic, question_factory):
        question = question_factory()
        headers = auth_headers(student_token)
        session_id = create_session(client, headers, subject, topic, total=1).json()["data"]["id"]

        r = client.post(f"/sessions/{session_id}/answers", headers=headers, json={
            "questionId": question.id,
            "userAnswer": "A",
            "isCorrect": False,
            "timeSpentSeconds": 12,
            "attemptCount": 1,
            "firstAttemptCorrect": False,
        })
        assert r.status_code == 201, r.text
        r = client.post(f"/sessions/{session_id}/answers", headers=headers, json={
            "question_id": question.id,
            "user_answer": "B",
            "is_correct": True,
            "attempt_count": 2,
            "first_attempt_correct": True,
            "hint_used": True,
            "hint_level": 1,
        })
        assert r.status_code == 201, r.text

        answers = api_call(client, "GET", f"/sessions/{session_id}/answers", headers=headers).json()["data"]
        assert len(answers) == 1
        assert answers[0]["attempt_count"] == 2
        assert answers[0]["first_attempt_correct"] is False
        assert answers[0]["hint_level"] == 1

    def test_complete_session_updates_learner(
        self, client: TestClient, db_session: Session, student, student_token, auth_headers, subject, topic, question_factory
    ):
        question_factory()
        question_factory()
        headers = auth_headers(student_token)
        session_id = create_session(client, headers, subject, topic, total=2).json()["data"]["id"]

        r = api_call(client, "POST", f"/sessions/{session_id}/complete", headers=headers, json={
            "score_percentage": 50.0, "time_spent_seconds": 120, "correct_answers": 1, "total_questions": 2,
        })
        assert r.json()["data"]["status"] == SessionStatusEnum.COMPLETED.value

        db_session.expire_all()
        assert student.xp_points == 10
        assert student.current_streak == 1

        r = client.patch(f"/sessions/{session_id}", headers=headers, json={"last_question_index": 1})
        assert r.status_code == 409
        check = api_call(client, "GET", f"/sessions/{session_id}/resume-check", headers=headers).json()["data"]
        assert check["can_resume"] is False

    def test_completed_status_needs_complete_endpoint(
        self, client: TestClient, student_token, auth_headers, subject, topic, question_factory
    ):
        question_factory()
        headers = auth_headers(student_token)
        session_id = create_session(client, headers, subject, topic, total=1).json()["data"]["id"]
        r = client.patch(f"/sessions/{session_id}", headers=headers, json={"status": "completed"})
        assert r.status_code == 400

    def test_sessions_are_private(
        self, client: TestClient, db_session: Session, student_token, auth_headers, user_factory, subject, topic, question_factory
    ):
        question_factory()
        session_id = create_session(client, auth_headers(student_token), subject, topic, total=1).json()["data"]["id"]
        other = user_factory()
        r = client.get(f"/sessions/{session_id}", headers=auth_headers(create_access_token(other.id, other.role.value)))
        assert r.status_code == 403
        r = client.get(f"/sessions/{session_id}")
        assert r.status_code == 401
        assert crud_learning_session.get(db_session, id=session_id) is not None

    def test_bad_token(self, client: TestClient, subject, topic):
        r = create_session(client, {"Authorization": "Bearer not-a-token"}, subject, topic)
        assert r.status_code == 401


class TestQuestionLookup:

    def test_by_ids_keeps_order_and_skips_missing(self, client: TestClient, question_factory):
        first = question_factory()
        second = question_factory()
        r = api_call(client, "POST", "/questions/by-ids", json={"questionIds": [second.id, 424242, first.id]})
        assert [q["id"] for q in r.json()["data"]] == [second.id, first.id]
