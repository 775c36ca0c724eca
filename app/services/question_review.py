import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import (
    AuditActionEnum,
    AuditEntityTypeEnum,
    ReviewStatusEnum,
    ReviewTypeEnum,
)
from app.crud.base import PaginatedResponse
from app.crud.question import question as crud_question
from app.crud.question_review import question_review as crud_review
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.question import Question
from app.schemas.question_review import (
    QuestionReview,
    QuestionReviewCreate,
    ReviewBatchItem,
    ReviewBatchResult,
    ReviewBatchSummary,
    ReviewDecision,
    ReviewDiff,
    ReviewDiffField,
    ReviewWithValidation,
)
from app.services.audit import audit_service
from app.services.review_generator import ReviewGenerator
from app.utils.review_validation import validate_review_result

logger = logging.getLogger(__name__)

# Question field -> proposed field on the review
PROPOSED_FIELDS = {
    "hint1": "proposed_hint1",
    "hint2": "proposed_hint2",
    "hint3": "proposed_hint3",
    "solution": "proposed_solution",
    "explanation": "proposed_explanation",
}


class QuestionReviewService:

    def _get_question_or_404(self, db: Session, question_id: int):
        question = crud_question.get(db, id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found.")
        return question

    def _get_pending_review_or_raise(self, db: Session, review_id: int):
        review = crud_review.get(db, id=review_id)
        if not review:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found.")
        if review.status != ReviewStatusEnum.PENDING:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"No pending review: this review is already {review.status.value}."
            )
        return review

    def _audit(self, db: Session, *, admin_id: int, action: AuditActionEnum, entity_id, event: str,
               request_info: Optional[AuditRequestInfo] = None, **details):
        audit_service.log_action(
            db,
            admin_id=admin_id,
            action=action,
            entity_type=AuditEntityTypeEnum.QUESTION,
            entity_id=entity_id,
            details={"event": event, **details},
            request_info=request_info,
        )

    async def generate(
        self,
        db: Session,
        *,
        question_id: int,
        reviewer: User,
        generator: ReviewGenerator,
        review_type: ReviewTypeEnum = ReviewTypeEnum.SINGLE,
        request_info: Optional[AuditRequestInfo] = None,
    ) -> ReviewWithValidation:
        question = self._get_question_or_404(db, question_id)
        if crud_review.get_pending_for_question(db, question_id=question_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This question already has a pending review. Approve or reject it first."
            )

        subject_name = question.subject.name if question.subject else None
        started = time.monotonic()
        try:
            result = await generator.review_question(Question.model_validate(question), subject_name)
        except (HTTPException, ValueError) as e:
            error = e.detail if isinstance(e, HTTPException) else str(e)
            review = crud_review.create(db, obj_in=QuestionReviewCreate(
                question_id=question_id,
                reviewer_id=reviewer.id,
                review_type=review_type,
                status=ReviewStatusEnum.FAILED,
                model_used=generator.model,
                review_duration_ms=int((time.monotonic() - started) * 1000),
                error_message=str(error),
            ))
            logger.error(f"Review generation failed for question {question_id}: {error}")
            self._audit(db, admin_id=reviewer.id, action=AuditActionEnum.UPDATE, entity_id=question_id,
                        event="question_review_failed", request_info=request_info, review_id=review.id, error=str(error))
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Review generation failed: {error}"
            )

        validation = validate_review_result(result)
        review = crud_review.create(db, obj_in=QuestionReviewCreate(
            question_id=question_id,
            reviewer_id=reviewer.id,
            review_type=review_type,
            status=ReviewStatusEnum.PENDING if validation.is_valid else ReviewStatusEnum.FAILED,
            proposed_hint1=result.hint1 or None,
            proposed_hint2=result.hint2 or None,
            proposed_hint3=result.hint3 or None,
            proposed_solution=result.solution or None,
            proposed_explanation=result.explanation or None,
            model_used=generator.model,
            tokens_used=result.tokens_used,
            review_duration_ms=int((time.monotonic() - started) * 1000),
            error_message=None if validation.is_valid else "; ".join(validation.issues),
        ))

        if validation.is_valid:
            logger.info(f"Review {review.id} created for question {question_id}")
            event = "question_review_created"
        else:
            logger.warning(f"Review {review.id} for question {question_id} failed validation: {validation.issues}")
            event = "question_review_failed"
        self._audit(db, admin_id=reviewer.id, action=AuditActionEnum.UPDATE, entity_id=question_id, event=event,
                    request_info=request_info, review_id=review.id, review_type=review_type.value,
                    issues=validation.issues)

        return ReviewWithValidation(review=QuestionReview.model_validate(review), validation=validation)

    async def generate_batch(
        self,
        db: Session,
        *,
        question_ids: List[int],
        reviewer: User,
        generator: ReviewGenerator,
        batch_size: Optional[int] = None,
        request_info: Optional[AuditRequestInfo] = None,
    ) -> ReviewBatchResult:
        """Generate one review per question; a failing item never stops the rest."""
        batch = list(dict.fromkeys(question_ids))[:batch_size or settings.REVIEW_BATCH_SIZE]
        results: List[ReviewBatchItem] = []

        for question_id in batch:
            try:
                outcome = await self.generate(
                    db,
                    question_id=question_id,
                    reviewer=reviewer,
                    generator=generator,
                    review_type=ReviewTypeEnum.BATCH,
                    request_info=request_info,
                )
            except HTTPException as e:
                results.append(ReviewBatchItem(question_id=question_id, success=False, error=str(e.detail)))
                continue

            review = outcome.review
            if review.status == ReviewStatusEnum.PENDING:
                results.append(ReviewBatchItem(question_id=question_id, success=True, review_id=review.id))
            else:
                results.append(ReviewBatchItem(
                    question_id=question_id, success=False, review_id=review.id, error=review.error_message
                ))

        successful = sum(1 for r in results if r.success)
        summary = ReviewBatchSummary(total=len(results), successful=successful, failed=len(results) - successful)
        logger.info(f"Batch review finished: {summary.successful}/{summary.total} succeeded")
        self._audit(db, admin_id=reviewer.id, action=AuditActionEnum.UPDATE, entity_id=None,
                    event="question_review_batch_created", request_info=request_info,
                    question_ids=batch, summary=summary.model_dump())
        return ReviewBatchResult(results=results, summary=summary)

    def approve(
        self, db: Session, *, review_id: int, approver: User, request_info: Optional[AuditRequestInfo] = None
    ) -> QuestionReview:
        review = self._get_pending_review_or_raise(db, review_id)
        question = review.question

        applied = {}
        for question_field, proposed_field in PROPOSED_FIELDS.items():
            value = getattr(review, proposed_field)
            if value is not None and value.strip():
                applied[question_field] = value

        try:
            crud_question.update(db, db_obj=question, obj_in={**applied, "updated_by": approver.id}, commit=False)
            crud_review.update(db, db_obj=review, obj_in={
                "status": ReviewStatusEnum.APPROVED,
                "approver_id": approver.id,
                "approved_at": datetime.now(timezone.utc),
            }, commit=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to approve review {review_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to approve review.")

        db.refresh(review)
        logger.info(f"Review {review_id} approved by {approver.id}; updated fields {sorted(applied)}")
        self._audit(db, admin_id=approver.id, action=AuditActionEnum.STATUS_CHANGE, entity_id=review.question_id,
                    event="question_review_approved", request_info=request_info, review_id=review_id,
                    fields=sorted(applied))
        return QuestionReview.model_validate(review)

    def reject(
        self, db: Session, *, review_id: int, reason: str, approver: User,
        request_info: Optional[AuditRequestInfo] = None
    ) -> QuestionReview:
        if not reason or not reason.strip():
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="A rejection reason is required.")
        review = self._get_pending_review_or_raise(db, review_id)

        try:
            crud_review.update(db, db_obj=review, obj_in={
                "status": ReviewStatusEnum.REJECTED,
                "approver_id": approver.id,
                "rejection_reason": reason.strip(),
            }, commit=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to reject review {review_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reject review.")

        db.refresh(review)
        logger.info(f"Review {review_id} rejected by {approver.id}")
        self._audit(db, admin_id=approver.id, action=AuditActionEnum.STATUS_CHANGE, entity_id=review.question_id,
                    event="question_review_rejected", request_info=request_info, review_id=review_id,
                    reason=reason.strip())
        return QuestionReview.model_validate(review)

    def decide(
        self, db: Session, *, review_id: int, decision: ReviewDecision, approver: User,
        request_info: Optional[AuditRequestInfo] = None
    ) -> QuestionReview:
        if decision.approved:
            return self.approve(db, review_id=review_id, approver=approver, request_info=request_info)
        return self.reject(
            db, review_id=review_id, reason=decision.rejection_reason, approver=approver, request_info=request_info
        )

    def load_latest(self, db: Session, question_id: int) -> Optional[QuestionReview]:
        self._get_question_or_404(db, question_id)
        review = crud_review.get_latest_for_question(db, question_id=question_id)
        return QuestionReview.model_validate(review) if review else None

    def get_diff(self, db: Session, question_id: int) -> ReviewDiff:
        """Side by side view of the latest review against the live question."""
        question = self._get_question_or_404(db, question_id)
        review = crud_review.get_latest_for_question(db, question_id=question_id)
        if not review:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No review found for this question.")

        fields = []
        for question_field, proposed_field in PROPOSED_FIELDS.items():
            current = getattr(question, question_field)
            proposed = getattr(review, proposed_field)
            fields.append(ReviewDiffField(
                field=question_field,
                current=current,
                proposed=proposed,
                changed=bool(proposed and proposed.strip()) and proposed != current,
            ))
        return ReviewDiff(
            review=QuestionReview.model_validate(review),
            fields=fields,
            actionable=review.status == ReviewStatusEnum.PENDING,
        )

    def get_history(
        self, db: Session, *, question_id: Optional[int] = None, review_status: Optional[ReviewStatusEnum] = None,
        page: int = 1, size: int = 20
    ) -> PaginatedResponse[QuestionReview]:
        result = crud_review.get_history(db, question_id=question_id, status=review_status, page=page, size=size)
        result["items"] = [QuestionReview.model_validate(r) for r in result["items"]]
        return PaginatedResponse[QuestionReview](**result)


question_review_service = QuestionReviewService()
