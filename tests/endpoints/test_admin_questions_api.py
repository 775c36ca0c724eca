from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, QuestionStatusEnum
from app.crud.question import question as crud_question
from app.models.admin_audit_log import AdminAuditLog
from tests.helpers.asserts import api_call, error_code


def question_payload(subject, topic, **overrides):
    payload = {
        "subject_id": subject.id,
        "topic_id": topic.id,
        "question_text": "What is 12 divided by 4?",
        "option_a": "2",
        "option_b": "3",
        "option_c": "4",
        "option_d": "6",
        "correct_answer": "B",
        "hint1": "Think about multiplication.",
        "solution": "4 x 3 = 12, so the answer is 3.",
    }
    payload.update(overrides)
    return payload


class TestAdminQuestions:

    def test_create_question(self, client: TestClient, db_session: Session, admin_token, auth_headers, subject, topic):
        r = client.post("/admin/questions/", headers=auth_headers(admin_token), json=question_payload(subject, topic))
        assert r.status_code == 201, r.text
        created = r.json()["data"]
        assert created["status"] == QuestionStatusEnum.DRAFT.value
        assert created["correct_answer"] == "B"

        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.CREATE
        assert entry.entity_id == str(created["id"])

    def test_correct_answer_needs_an_option(self, client: TestClient, admin_token, auth_headers, subject, topic):
        r = client.post(
            "/admin/questions/",
            headers=auth_headers(admin_token),
            json=question_payload(subject, topic, correct_answer="E"),
        )
        assert r.status_code == 422
        assert error_code(r) == "VALIDATION_ERROR"

    def test_topic_must_match_subject(self, client: TestClient, admin_token, auth_headers, subject, topic):
        r = client.post(
            "/admin/questions/",
            headers=auth_headers(admin_token),
            json=question_payload(subject, topic, topic_id=987654),
        )
        assert r.status_code == 400

    def test_learners_are_refused(self, client: TestClient, student_token, auth_headers, subject, topic):
        r = client.post("/admin/questions/", headers=auth_headers(student_token), json=question_payload(subject, topic))
        assert r.status_code == 403
        r = client.get("/admin/questions/", headers=auth_headers(student_token))
        assert r.status_code == 403

    def test_list_with_status_filter(self, client: TestClient, admin_token, auth_headers, question_factory):
        published = question_factory()
        question_factory(status=QuestionStatusEnum.DRAFT)

        r = api_call(client, "GET", "/admin/questions/?status=published", headers=auth_headers(admin_token))
        page = r.json()["data"]
        assert page["total"] == 1
        assert page["items"][0]["id"] == published.id
        assert page["has_next"] is False

        r = api_call(client, "GET", "/admin/questions/?search=simplify&size=1", headers=auth_headers(admin_token))
        page = r.json()["data"]
        assert page["total"] == 2
        assert page["pages"] == 2
        assert page["has_next"] is True

    def test_update_records_status_change(
        self, client: TestClient, db_session: Session, admin_token, auth_headers, question_factory
    ):
        question = question_factory(status=QuestionStatusEnum.DRAFT)
        r = api_call(
            client, "PUT", f"/admin/questions/{question.id}",
            headers=auth_headers(admin_token), json={"status": "published", "hint2": "Try 4 x 3."},
        )
        assert r.json()["data"]["status"] == "published"
        assert r.json()["data"]["hint2"] == "Try 4 x 3."

        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.STATUS_CHANGE
        assert entry.details["fields"] == ["hint2", "status"]
        assert entry.details["new_status"] == "published"

    def test_update_cannot_point_answer_at_blank_option(self, client: TestClient, admin_token, auth_headers, question_factory):
        question = question_factory(option_e=None)
        r = client.put(f"/admin/questions/{question.id}", headers=auth_headers(admin_token), json={"correct_answer": "E"})
        assert r.status_code == 422

    def test_delete_archives(self, client: TestClient, db_session: Session, admin_token, auth_headers, question_factory):
        question = question_factory()
        r = api_call(client, "DELETE", f"/admin/questions/{question.id}", headers=auth_headers(admin_token))
        assert r.json()["data"]["status"] == "archived"

        db_session.expire_all()
        assert crud_question.get(db_session, id=question.id).status == QuestionStatusEnum.ARCHIVED
        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.DELETE
        assert entry.details["soft_delete"] is True

    def test_unknown_question(self, client: TestClient, admin_token, auth_headers):
        r = client.get("/admin/questions/424242", headers=auth_headers(admin_token))
        assert r.status_code == 404
        assert error_code(r) == "NOT_FOUND"

    def test_bulk_publish(self, client: TestClient, db_session: Session, admin_token, auth_headers, question_factory):
        ids = [question_factory(status=QuestionStatusEnum.DRAFT).id for _ in range(3)]
        r = api_call(
            client, "POST", "/admin/questions/bulk",
            headers=auth_headers(admin_token), json={"question_ids": ids + [ids[0]], "action": "publish"},
        )
        assert r.json()["data"]["affected"] == 3

        db_session.expire_all()
        assert {crud_question.get(db_session, id=qid).status for qid in ids} == {QuestionStatusEnum.PUBLISHED}
        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.BULK_PUBLISH
        assert entry.details["question_ids"] == ids

    def test_bulk_delete_removes_rows(self, client: TestClient, db_session: Session, admin_token, auth_headers, question_factory):
        ids = [question_factory().id for _ in range(2)]
        r = api_call(
            client, "POST", "/admin/questions/bulk",
            headers=auth_headers(admin_token), json={"question_ids": ids, "action": "delete"},
        )
        assert r.json()["data"]["affected"] == 2
        db_session.expire_all()
        assert crud_question.get(db_session, id=ids[0]) is None
