import logging
import re
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum
from app.crud.subject import subject as crud_subject, topic as crud_topic
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.subject import (
    Subject,
    SubjectCreate,
    SubjectDetail,
    SubjectUpdate,
    Topic,
    TopicCreate,
    TopicReorder,
    TopicReorderResult,
    TopicUpdate,
)
from app.services.audit import audit_service

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"[\s-]+", "-", slug).strip("-")
    return slug or "subject"


class CatalogService:
    """Subjects and their ordered topics, for learners picking a session and for admins curating the bank."""

    def _subject_or_404(self, db: Session, subject_id: int):
        subject = crud_subject.get(db, id=subject_id)
        if not subject:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found.")
        return subject

    def _topic_or_404(self, db: Session, topic_id: int):
        topic = crud_topic.get(db, id=topic_id)
        if not topic:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found.")
        return topic

    def _topics(self, db: Session, subject_id: int, *, active_only: bool, published_only: bool) -> List[Topic]:
        topics = crud_topic.get_for_subject(db, subject_id=subject_id, active_only=active_only)
        counts = crud_topic.question_counts(db, topic_ids=[t.id for t in topics], published_only=published_only)
        return [Topic.model_validate(t).model_copy(update={"question_count": counts.get(t.id, 0)}) for t in topics]

    def list_subjects(self, db: Session, *, is_active: Optional[bool] = None) -> List[Subject]:
        topic_counts = crud_subject.topic_counts(db)
        question_counts = crud_subject.question_counts(db)
        return [
            Subject.model_validate(s).model_copy(update={
                "topic_count": topic_counts.get(s.id, 0),
                "question_count": question_counts.get(s.id, 0),
            })
            for s in crud_subject.list_ordered(db, is_active=is_active)
        ]

    def list_topics(self, db: Session, subject_id: int) -> List[Topic]:
        """Active topics with their published question counts; inactive subjects look missing."""
        subject = self._subject_or_404(db, subject_id)
        if not subject.is_active:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found.")
        return self._topics(db, subject.id, active_only=True, published_only=True)

    def get_subject_detail(self, db: Session, subject_id: int) -> SubjectDetail:
        subject = self._subject_or_404(db, subject_id)
        topics = self._topics(db, subject.id, active_only=False, published_only=False)
        return SubjectDetail(
            subject=Subject.model_validate(subject).model_copy(update={
                "topic_count": len(topics),
                "question_count": sum(t.question_count for t in topics),
            }),
            topics=topics,
        )

    def create_subject(
        self, db: Session, *, subject_in: SubjectCreate, admin: User, request_info: Optional[AuditRequestInfo] = None
    ) -> Subject:
        slug = slugify(subject_in.name)
        if crud_subject.get_by_name(db, name=subject_in.name) or crud_subject.get_by_slug(db, slug=slug):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A subject with this name already exists.")

        subject = crud_subject.create(db, obj_in={
            "name": subject_in.name,
            "slug": slug,
            "description": subject_in.description,
            "display_order": crud_subject.next_display_order(db),
            "is_active": True,
        })
        logger.info(f"Admin {admin.id} created subject {subject.id} ({slug})")
        audit_service.log_action(
            db, admin_id=admin.id, action=AuditActionEnum.CREATE, entity_type=AuditEntityTypeEnum.SUBJECT,
            entity_id=subject.id, details={"name": subject.name, "slug": slug}, request_info=request_info,
        )
        return Subject.model_validate(subject)

    def update_subject(
        self, db: Session, *, subject_id: int, subject_in: SubjectUpdate, admin: User,
        request_info: Optional[AuditRequestInfo] = None
    ) -> Subject:
        subject = self._subject_or_404(db, subject_id)
        changes = subject_in.model_dump(exclude_unset=True)
        if not changes:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid update fields provided.")
        if changes.get("name"):
            if crud_subject.get_by_name(db, name=changes["name"], exclude_id=subject.id):
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A subject with this name already exists.")
            changes["slug"] = slugify(changes["name"])

        was_active = subject.is_active
        subject = crud_subject.update(db, db_obj=subject, obj_in=changes)
        action = AuditActionEnum.STATUS_CHANGE if subject.is_active != was_active else AuditActionEnum.UPDATE
        audit_service.log_action(
            db, admin_id=admin.id, action=action, entity_type=AuditEntityTypeEnum.SUBJECT,
            entity_id=subject.id, details={"changes": changes}, request_info=request_info,
        )
        return Subject.model_validate(subject)

    def create_topic(
        self, db: Session, *, topic_in: TopicCreate, admin: User, request_info: Optional[AuditRequestInfo] = None
    ) -> Topic:
        subject = self._subject_or_404(db, topic_in.subject_id)
        if crud_topic.get_by_name_in_subject(db, subject_id=subject.id, name=topic_in.name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A topic with this name already exists in this subject."
            )
        topic = crud_topic.create(db, obj_in={
            "subject_id": subject.id,
            "name": topic_in.name,
            "description": topic_in.description,
            "order_index": crud_topic.next_order_index(db, subject_id=subject.id),
            "is_active": True,
        })
        audit_service.log_action(
            db, admin_id=admin.id, action=AuditActionEnum.CREATE, entity_type=AuditEntityTypeEnum.TOPIC,
            entity_id=topic.id, details={"name": topic.name, "subject_id": subject.id}, request_info=request_info,
        )
        return Topic.model_validate(topic)

    def update_topic(
        self, db: Session, *, topic_id: int, topic_in: TopicUpdate, admin: User,
        request_info: Optional[AuditRequestInfo] = None
    ) -> Topic:
        topic = self._topic_or_404(db, topic_id)
        changes = topic_in.model_dump(exclude_unset=True)
        if not changes:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid update fields provided.")
        if changes.get("name") and crud_topic.get_by_name_in_subject(
            db, subject_id=topic.subject_id, name=changes["name"], exclude_id=topic.id
        ):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A topic with this name already exists in this subject."
            )

        was_active = topic.is_active
        topic = crud_topic.update(db, db_obj=topic, obj_in=changes)
        action = AuditActionEnum.STATUS_CHANGE if topic.is_active != was_active else AuditActionEnum.UPDATE
        audit_service.log_action(
            db, admin_id=admin.id, action=action, entity_type=AuditEntityTypeEnum.TOPIC,
            entity_id=topic.id, details={"changes": changes}, request_info=request_info,
        )
        return Topic.model_validate(topic)

    def reorder_topics(
        self, db: Session, *, reorder_in: TopicReorder, admin: User, request_info: Optional[AuditRequestInfo] = None
    ) -> TopicReorderResult:
        self._subject_or_404(db, reorder_in.subject_id)
        ids = [item.id for item in reorder_in.items]
        if len(set(ids)) != len(ids):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Each topic may appear only once.")

        topics = {t.id: t for t in crud_topic.get_by_ids(db, topic_ids=ids)}
        missing = [topic_id for topic_id in ids if topic_id not in topics]
        if missing:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Topics not found: {missing}")
        if any(t.subject_id != reorder_in.subject_id for t in topics.values()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="All topics must belong to the specified subject."
            )

        # One transaction for the whole new order
        for item in reorder_in.items:
            crud_topic.update(db, db_obj=topics[item.id], obj_in={"order_index": item.order_index}, commit=False)
        db.commit()

        audit_service.log_action(
            db, admin_id=admin.id, action=AuditActionEnum.UPDATE, entity_type=AuditEntityTypeEnum.TOPIC,
            details={
                "action": "reorder",
                "subject_id": reorder_in.subject_id,
                "items": [item.model_dump() for item in reorder_in.items],
            },
            request_info=request_info,
        )
        logger.info(f"Admin {admin.id} reordered {len(ids)} topics of subject {reorder_in.subject_id}")
        return TopicReorderResult(subject_id=reorder_in.subject_id, updated=len(ids))


catalog_service = CatalogService()
