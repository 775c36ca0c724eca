from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, RoleEnum
from app.core.security import create_access_token
from app.models.admin_audit_log import AdminAuditLog
from tests.helpers.asserts import api_call


class TestAdminUsers:

    def test_list_filters_by_role_and_search(self, client: TestClient, admin_token, auth_headers, user_factory, student):
        user_factory()
        headers = auth_headers(admin_token)

        page = api_call(client, "GET", "/admin/users/?role=student", headers=headers).json()["data"]
        assert page["total"] == 2
        assert {u["role"] for u in page["items"]} == {"student"}

        page = api_call(client, "GET", f"/admin/users/?search={student.email[:20]}", headers=headers).json()["data"]
        assert [u["id"] for u in page["items"]] == [student.id]

    def test_role_change_is_audited(self, client: TestClient, db_session: Session, admin_token, auth_headers, student):
        headers = auth_headers(admin_token)
        updated = api_call(client, "PUT", f"/admin/users/{student.id}", headers=headers, json={"role": "admin"}).json()["data"]
        assert updated["role"] == "admin"

        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.ROLE_CHANGE
        assert entry.details["previous_role"] == "student"
        assert entry.details["new_role"] == "admin"

        detail = api_call(client, "GET", f"/admin/users/{student.id}", headers=headers).json()["data"]
        assert [item["action"] for item in detail["role_history"]] == ["ROLE_CHANGE"]

    def test_deactivate(self, client: TestClient, db_session: Session, admin_token, auth_headers, student):
        api_call(client, "PUT", f"/admin/users/{student.id}", headers=auth_headers(admin_token), json={"is_active": False})
        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.STATUS_CHANGE
        assert entry.details["new_active"] is False

    def test_cannot_demote_or_deactivate_self(self, client: TestClient, admin_user, admin_token, auth_headers):
        headers = auth_headers(admin_token)
        r = client.put(f"/admin/users/{admin_user.id}", headers=headers, json={"role": "student"})
        assert r.status_code == 400
        r = client.put(f"/admin/users/{admin_user.id}", headers=headers, json={"is_active": False})
        assert r.status_code == 400

    def test_super_admin_role_needs_super_admin(self, client: TestClient, admin_token, auth_headers, user_factory, student):
        r = client.put(f"/admin/users/{student.id}", headers=auth_headers(admin_token), json={"role": "super_admin"})
        assert r.status_code == 403

        root = user_factory(RoleEnum.SUPER_ADMIN)
        r = client.put(
            f"/admin/users/{student.id}",
            headers=auth_headers(create_access_token(root.id, root.role.value)),
            json={"role": "super_admin"},
        )
        assert r.status_code == 200

    def test_detail_stats(self, client: TestClient, admin_token, auth_headers, student, student_token, subject, topic, question_factory):
        question_factory()
        question_factory()
        learner = auth_headers(student_token)
        session_id = client.post("/sessions/", headers=learner, json={
            "subject_id": subject.id, "topic_id": topic.id, "total_questions": 2,
        }).json()["data"]["id"]
        api_call(client, "PATCH", f"/sessions/{session_id}", headers=learner, json={"questions_answered": 2, "correct_answers": 1})
        api_call(client, "POST", f"/sessions/{session_id}/complete", headers=learner, json={
            "score_percentage": 50.0, "correct_answers": 1, "total_questions": 2,
        })

        detail = api_call(client, "GET", f"/admin/users/{student.id}", headers=auth_headers(admin_token)).json()["data"]
        assert detail["stats"]["total_sessions"] == 1
        assert detail["stats"]["total_questions_answered"] == 2
        assert detail["stats"]["average_accuracy"] == 50
        assert detail["recent_sessions"][0]["id"] == session_id

    def test_unknown_user_and_learner_access(self, client: TestClient, admin_token, student_token, auth_headers):
        assert client.get("/admin/users/424242", headers=auth_headers(admin_token)).status_code == 404
        assert client.get("/admin/users/", headers=auth_headers(student_token)).status_code == 403
