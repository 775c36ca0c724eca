import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import (
    AuditActionEnum,
    AuditEntityTypeEnum,
    BulkQuestionActionEnum,
    QuestionStatusEnum,
)
from app.crud.base import PaginatedResponse
from app.crud.question import question as crud_question
from app.crud.subject import topic as crud_topic
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.question import (
    Question,
    QuestionBulkAction,
    QuestionBulkResult,
    QuestionCreate,
    QuestionUpdate,
)
from app.services.audit import audit_service

logger = logging.getLogger(__name__)

BULK_STATUS = {
    BulkQuestionActionEnum.PUBLISH: QuestionStatusEnum.PUBLISHED,
    BulkQuestionActionEnum.ARCHIVE: QuestionStatusEnum.ARCHIVED,
    BulkQuestionActionEnum.DRAFT: QuestionStatusEnum.DRAFT,
}

BULK_AUDIT_ACTION = {
    BulkQuestionActionEnum.PUBLISH: AuditActionEnum.BULK_PUBLISH,
    BulkQuestionActionEnum.ARCHIVE: AuditActionEnum.BULK_ARCHIVE,
    BulkQuestionActionEnum.DRAFT: AuditActionEnum.UPDATE,
    BulkQuestionActionEnum.DELETE: AuditActionEnum.BULK_DELETE,
}


class QuestionService:

    def _get_or_404(self, db: Session, question_id: int):
        question = crud_question.get(db, id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found.")
        return question

    def _validate_topic(self, db: Session, subject_id: int, topic_id: int):
        topic = crud_topic.get(db, id=topic_id)
        if not topic or topic.subject_id != subject_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Topic does not exist or does not belong to the subject."
            )

    def get_questions_by_ids(self, db: Session, question_ids: List[int]) -> List[Question]:
        """Questions in the requested order; ids that no longer exist are dropped."""
        found = {
            q.id: q for q in crud_question.get_by_ids(
                db, question_ids=question_ids, batch_size=settings.QUESTION_FETCH_BATCH_SIZE
            )
        }
        missing = [qid for qid in question_ids if qid not in found]
        if missing:
            logger.warning(f"{len(missing)} requested questions not found: {missing[:20]}")
        return [Question.model_validate(found[qid]) for qid in dict.fromkeys(question_ids) if qid in found]

    def list_questions(self, db: Session, *, filters: Dict[str, Any], page: int = 1, size: int = 20) -> PaginatedResponse[Question]:
        result = crud_question.get_filtered_paginated(db, filters=filters, page=page, size=size)
        result["items"] = [Question.model_validate(q) for q in result["items"]]
        return PaginatedResponse[Question](**result)

    def get_question(self, db: Session, question_id: int) -> Question:
        return Question.model_validate(self._get_or_404(db, question_id))

    def create_question(
        self, db: Session, *, question_in: QuestionCreate, admin: User, request_info: Optional[AuditRequestInfo] = None
    ) -> Question:
        self._validate_topic(db, question_in.subject_id, question_in.topic_id)
        data = question_in.model_dump()
        data.update(created_by=admin.id, updated_by=admin.id)
        question = crud_question.create(db, obj_in=data)
        audit_service.log_action(
            db, admin_id=admin.id, action=AuditActionEnum.CREATE, entity_type=AuditEntityTypeEnum.QUESTION,
            entity_id=question.id, details={"topic_id": question.topic_id, "status": question_in.status},
            request_info=request_info,
        )
        return Question.model_validate(question)

    def update_question(
        self, db: Session, *, question_id: int, question_in: QuestionUpdate, admin: User,
        request_info: Optional[AuditRequestInfo] = None
    ) -> Question:
        question = self._get_or_404(db, question_id)
        changes = question_in.model_dump(exclude_unset=True)

        merged = Question.model_validate(question).model_dump()
        merged.update(changes)
        if "subject_id" in changes or "topic_id" in changes:
            self._validate_topic(db, merged["subject_id"], merged["topic_id"])
        correct_option = merged.get(f"option_{merged['correct_answer'].lower()}")
        if not correct_option or not correct_option.strip():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"correct_answer {merged['correct_answer']} must reference a non-empty option."
            )

        previous_status = question.status
        changes["updated_by"] = admin.id
        question = crud_question.update(db, db_obj=question, obj_in=changes)

        new_status = question.status
        status_changed = "status" in changes and new_status != previous_status
        audit_service.log_action(
            db,
            admin_id=admin.id,
            action=AuditActionEnum.STATUS_CHANGE if status_changed else AuditActionEnum.UPDATE,
            entity_type=AuditEntityTypeEnum.QUESTION,
            entity_id=question.id,
            details={
                "fields": sorted(k for k in changes if k != "updated_by"),
                **({"previous_status": previous_status, "new_status": new_status} if status_changed else {}),
            },
            request_info=request_info,
        )
        return Question.model_validate(question)

    def archive_question(
        self, db: Session, *, question_id: int, admin: User, request_info: Optional[AuditRequestInfo] = None
    ) -> Question:
        """Soft delete: questions are archived, never removed, from the single-item action."""
        question = self._get_or_404(db, question_id)
        previous_status = question.status
        question = crud_question.update(db, db_obj=question, obj_in={
            "status": QuestionStatusEnum.ARCHIVED, "updated_by": admin.id,
        })
        audit_service.log_action(
            db, admin_id=admin.id, action=AuditActionEnum.DELETE, entity_type=AuditEntityTypeEnum.QUESTION,
            entity_id=question.id, details={"soft_delete": True, "previous_status": previous_status},
            request_info=request_info,
        )
        return Question.model_validate(question)

    def bulk_action(
        self, db: Session, *, bulk_in: QuestionBulkAction, admin: User, request_info: Optional[AuditRequestInfo] = None
    ) -> QuestionBulkResult:
        question_ids = list(dict.fromkeys(bulk_in.question_ids))
        if bulk_in.action == BulkQuestionActionEnum.DELETE:
            try:
                affected = crud_question.bulk_delete(db, question_ids=question_ids)
            except IntegrityError:
                db.rollback()
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Some questions already have learner answers; archive them instead."
                )
        else:
            affected = crud_question.bulk_update_status(
                db, question_ids=question_ids, status=BULK_STATUS[bulk_in.action]
            )

        logger.info(f"Admin {admin.id} ran bulk {bulk_in.action.value} on {affected} questions")
        audit_service.log_action(
            db,
            admin_id=admin.id,
            action=BULK_AUDIT_ACTION[bulk_in.action],
            entity_type=AuditEntityTypeEnum.QUESTION,
            details={"action": bulk_in.action.value, "question_ids": question_ids, "affected": affected},
            request_info=request_info,
        )
        return QuestionBulkResult(action=bulk_in.action, affected=affected)


question_service = QuestionService()
