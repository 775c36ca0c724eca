from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum, QuestionStatusEnum
from app.models.admin_audit_log import AdminAuditLog
from tests.helpers.asserts import api_call


class TestLearnerCatalog:

    def test_lists_active_subjects_with_counts(self, client: TestClient, db_session: Session, subject, question_factory):
        question_factory()
        question_factory(status=QuestionStatusEnum.DRAFT)

        subjects = api_call(client, "GET", "/subjects/").json()["data"]
        assert [s["id"] for s in subjects] == [subject.id]
        assert subjects[0]["topic_count"] == 1
        assert subjects[0]["question_count"] == 2

        subject.is_active = False
        db_session.commit()
        assert api_call(client, "GET", "/subjects/").json()["data"] == []

    def test_topics_are_ordered_and_count_published_questions(
        self, client: TestClient, db_session: Session, subject, topic, topic_factory, question_factory
    ):
        later = topic_factory(name="Geometry")
        hidden = topic_factory(name="Calculus")
        topic.order_index, later.order_index = 5, 1
        hidden.is_active = False
        db_session.commit()
        question_factory()
        question_factory(status=QuestionStatusEnum.DRAFT)

        topics = api_call(client, "GET", f"/subjects/{subject.id}/topics").json()["data"]
        assert [t["name"] for t in topics] == ["Geometry", "Algebra"]
        assert topics[1]["question_count"] == 1

    def test_unknown_subject_topics(self, client: TestClient):
        assert client.get("/subjects/9999/topics").status_code == 404


class TestAdminCatalog:

    def test_create_subject_is_audited(self, client: TestClient, db_session: Session, admin_token, auth_headers, subject):
        created = api_call(
            client, "POST", "/admin/subjects/", headers=auth_headers(admin_token),
            json={"name": "  Further Maths ", "description": "Beyond the core syllabus"},
        ).json()["data"]
        assert created["name"] == "Further Maths"
        assert created["slug"] == "further-maths"
        assert created["display_order"] > subject.display_order

        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.CREATE
        assert entry.entity_type == AuditEntityTypeEnum.SUBJECT
        assert entry.entity_id == str(created["id"])
        assert entry.details == {"name": "Further Maths", "slug": "further-maths"}

    def test_duplicate_subject_name(self, client: TestClient, admin_token, auth_headers, subject):
        r = client.post("/admin/subjects/", headers=auth_headers(admin_token), json={"name": "mathematics"})
        assert r.status_code == 409

    def test_blank_subject_name(self, client: TestClient, admin_token, auth_headers):
        r = client.post("/admin/subjects/", headers=auth_headers(admin_token), json={"name": "   "})
        assert r.status_code == 422

    def test_deactivating_subject_is_a_status_change(
        self, client: TestClient, db_session: Session, admin_token, auth_headers, subject
    ):
        updated = api_call(
            client, "PUT", f"/admin/subjects/{subject.id}", headers=auth_headers(admin_token), json={"is_active": False}
        ).json()["data"]
        assert updated["is_active"] is False
        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.STATUS_CHANGE
        assert entry.details == {"changes": {"is_active": False}}

        listed = api_call(client, "GET", "/admin/subjects/?is_active=false", headers=auth_headers(admin_token)).json()["data"]
        assert [s["id"] for s in listed] == [subject.id]

    def test_subject_detail_lists_every_topic(
        self, client: TestClient, db_session: Session, admin_token, auth_headers, subject, topic, topic_factory
    ):
        inactive = topic_factory(name="Statistics")
        inactive.is_active = False
        db_session.commit()
        detail = api_call(client, "GET", f"/admin/subjects/{subject.id}", headers=auth_headers(admin_token)).json()["data"]
        assert detail["subject"]["topic_count"] == 2
        assert {t["name"] for t in detail["topics"]} == {"Algebra", "Statistics"}

    def test_create_topic_appends_to_subject(
        self, client: TestClient, db_session: Session, admin_token, auth_headers, subject, topic
    ):
        created = api_call(
            client, "POST", "/admin/topics/", headers=auth_headers(admin_token),
            json={"subject_id": subject.id, "name": "Indices"},
        ).json()["data"]
        assert created["order_index"] == topic.order_index + 1
        entry = db_session.query(AdminAuditLog).one()
        assert entry.entity_type == AuditEntityTypeEnum.TOPIC
        assert entry.details == {"name": "Indices", "subject_id": subject.id}

        r = client.post("/admin/topics/", headers=auth_headers(admin_token), json={"subject_id": subject.id, "name": "indices"})
        assert r.status_code == 409
        r = client.post("/admin/topics/", headers=auth_headers(admin_token), json={"subject_id": 9999, "name": "Sets"})
        assert r.status_code == 404

    def test_update_topic(self, client: TestClient, db_session: Session, admin_token, auth_headers, topic):
        updated = api_call(
            client, "PUT", f"/admin/topics/{topic.id}", headers=auth_headers(admin_token), json={"name": "Linear Algebra"}
        ).json()["data"]
        assert updated["name"] == "Linear Algebra"
        assert db_session.query(AdminAuditLog).one().action == AuditActionEnum.UPDATE

    def test_reorder_topics_is_audited(
        self, client: TestClient, db_session: Session, admin_token, auth_headers, subject, topic, topic_factory
    ):
        second = topic_factory(name="Geometry")
        items = [{"id": second.id, "order_index": 0}, {"id": topic.id, "order_index": 1}]
        result = api_call(
            client, "PUT", "/admin/topics/reorder", headers=auth_headers(admin_token),
            json={"subject_id": subject.id, "items": items},
        ).json()["data"]
        assert result == {"subject_id": subject.id, "updated": 2}

        topics = api_call(client, "GET", f"/subjects/{subject.id}/topics").json()["data"]
        assert [t["name"] for t in topics] == ["Geometry", "Algebra"]

        entry = db_session.query(AdminAuditLog).one()
        assert entry.action == AuditActionEnum.UPDATE
        assert entry.details == {"action": "reorder", "subject_id": subject.id, "items": items}

    def test_reorder_rejects_foreign_and_missing_topics(
        self, client: TestClient, admin_token, auth_headers, subject, topic, topic_factory
    ):
        headers = auth_headers(admin_token)
        other = api_call(
            client, "POST", "/admin/subjects/", headers=headers, json={"name": "Physics"}
        ).json()["data"]
        foreign = topic_factory(name="Motion", subject_id=other["id"])

        r = client.put("/admin/topics/reorder", headers=headers, json={
            "subject_id": subject.id,
            "items": [{"id": topic.id, "order_index": 0}, {"id": foreign.id, "order_index": 1}],
        })
        assert r.status_code == 400

        r = client.put("/admin/topics/reorder", headers=headers, json={
            "subject_id": subject.id, "items": [{"id": 9999, "order_index": 0}],
        })
        assert r.status_code == 404

    def test_learners_cannot_curate(self, client: TestClient, student_token, auth_headers, subject, topic):
        headers = auth_headers(student_token)
        assert client.post("/admin/subjects/", headers=headers, json={"name": "Chemistry"}).status_code == 403
        assert client.put(f"/admin/subjects/{subject.id}", headers=headers, json={"name": "X"}).status_code == 403
        assert client.put("/admin/topics/reorder", headers=headers, json={
            "subject_id": subject.id, "items": [{"id": topic.id, "order_index": 0}],
        }).status_code == 403
