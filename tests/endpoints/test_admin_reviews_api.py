from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import QuestionStatusEnum
from app.crud.question import question as crud_question
from tests.helpers.asserts import api_call, error_code


def generate_review(client, headers, question_id):
    r = client.post("/admin/reviews/", headers=headers, json={"questionId": question_id})
    assert r.status_code == 201, r.text
    return r.json()["data"]


class TestReviewGeneration:

    def test_generate_pending_review(self, client: TestClient, admin_token, auth_headers, question_factory, review_generator_stub):
        question = question_factory()
        data = generate_review(client, auth_headers(admin_token), question.id)
        assert data["review"]["status"] == "pending"
        assert data["review"]["proposed_hint1"] == review_generator_stub.review.hint1
        assert data["validation"]["is_valid"] is True
        assert review_generator_stub.calls == [question.id]

    def test_second_pending_review_conflicts(self, client: TestClient, admin_token, auth_headers, question_factory):
        question = question_factory()
        headers = auth_headers(admin_token)
        generate_review(client, headers, question.id)
        r = client.post("/admin/reviews/", headers=headers, json={"questionId": question.id})
        assert r.status_code == 409
        assert error_code(r) == "CONFLICT"

    def test_generator_outage(self, client: TestClient, admin_token, auth_headers, question_factory, review_generator_stub):
        question = question_factory()
        review_generator_stub.error = HTTPException(status_code=503, detail="Review service is not configured.")
        headers = auth_headers(admin_token)
        r = client.post("/admin/reviews/", headers=headers, json={"questionId": question.id})
        assert r.status_code == 502

        latest = api_call(client, "GET", f"/admin/reviews/questions/{question.id}/latest", headers=headers).json()["data"]
        assert latest["status"] == "failed"

    def test_learners_are_refused(self, client: TestClient, student_token, auth_headers, question_factory):
        question = question_factory()
        r = client.post("/admin/reviews/", headers=auth_headers(student_token), json={"questionId": question.id})
        assert r.status_code == 403

    def test_batch(self, client: TestClient, admin_token, auth_headers, question_factory):
        ids = [question_factory().id for _ in range(3)]
        r = api_call(
            client, "POST", "/admin/reviews/batch",
            headers=auth_headers(admin_token), json={"questionIds": ids, "batchSize": 2},
        )
        body = r.json()
        assert body["data"]["summary"] == {"total": 2, "successful": 2, "failed": 0}
        assert body["message"] == "Processed 2 questions: 2 successful, 0 failed"


class TestReviewDecisions:

    def test_diff_then_approve(
        self, client: TestClient, db_session: Session, admin_token, auth_headers, question_factory, review_generator_stub
    ):
        question = question_factory(status=QuestionStatusEnum.DRAFT)
        headers = auth_headers(admin_token)
        review = generate_review(client, headers, question.id)["review"]

        diff = api_call(client, "GET", f"/admin/reviews/questions/{question.id}/diff", headers=headers).json()["data"]
        assert diff["actionable"] is True
        changed = {f["field"] for f in diff["fields"] if f["changed"]}
        assert changed == {"hint1", "hint2", "hint3", "solution", "explanation"}

        approved = api_call(client, "POST", f"/admin/reviews/{review['id']}/approve", headers=headers).json()["data"]
        assert approved["status"] == "approved"

        db_session.expire_all()
        stored = crud_question.get(db_session, id=question.id)
        assert stored.hint1 == review_generator_stub.review.hint1
        assert stored.solution == review_generator_stub.review.solution
        assert stored.status == QuestionStatusEnum.DRAFT

        latest = api_call(client, "GET", f"/admin/reviews/questions/{question.id}/latest", headers=headers).json()["data"]
        assert latest["id"] == review["id"]
        assert latest["approver_id"] is not None

    def test_reject_needs_reason(self, client: TestClient, admin_token, auth_headers, question_factory):
        question = question_factory()
        headers = auth_headers(admin_token)
        review = generate_review(client, headers, question.id)["review"]

        r = client.post(f"/admin/reviews/{review['id']}/reject", headers=headers, json={"reason": "   "})
        assert r.status_code == 422
        r = client.post(f"/admin/reviews/{review['id']}/decision", headers=headers, json={"approved": False})
        assert r.status_code == 422

        rejected = api_call(
            client, "POST", f"/admin/reviews/{review['id']}/decision",
            headers=headers, json={"approved": False, "rejectionReason": "Hint three gives it away"},
        ).json()["data"]
        assert rejected["status"] == "rejected"
        assert rejected["rejection_reason"] == "Hint three gives it away"

        r = client.post(f"/admin/reviews/{review['id']}/approve", headers=headers)
        assert r.status_code == 409

    def test_history_filters(self, client: TestClient, admin_token, auth_headers, question_factory):
        first = question_factory()
        second = question_factory()
        headers = auth_headers(admin_token)
        rejected = generate_review(client, headers, first.id)["review"]
        api_call(client, "POST", f"/admin/reviews/{rejected['id']}/reject", headers=headers, json={"reason": "No"})
        generate_review(client, headers, second.id)

        history = api_call(client, "GET", "/admin/reviews/history", headers=headers).json()["data"]
        assert history["total"] == 2
        history = api_call(client, "GET", "/admin/reviews/history?status=rejected", headers=headers).json()["data"]
        assert [item["id"] for item in history["items"]] == [rejected["id"]]
        history = api_call(client, "GET", f"/admin/reviews/history?questionId={second.id}", headers=headers).json()["data"]
        assert [item["question_id"] for item in history["items"]] == [second.id]

    def test_latest_without_reviews(self, client: TestClient, admin_token, auth_headers, question_factory):
        question = question_factory()
        r = api_call(client, "GET", f"/admin/reviews/questions/{question.id}/latest", headers=auth_headers(admin_token))
        assert r.json()["data"] is None
        assert r.json()["message"] == "No review exists for this question"
