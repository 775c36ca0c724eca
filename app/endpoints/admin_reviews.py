from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.constants import ReviewStatusEnum
from app.crud.base import PaginatedResponse
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.question_review import (
    QuestionReview,
    ReviewBatchCreate,
    ReviewBatchResult,
    ReviewCreate,
    ReviewDecision,
    ReviewDiff,
    ReviewRejection,
    ReviewWithValidation,
)
from app.schemas.response import APIResponse
from app.services.question_review import question_review_service
from app.services.review_generator import ReviewGenerator
from app.utils import deps

router = APIRouter()

@router.post("/", response_model=APIResponse[ReviewWithValidation], status_code=status.HTTP_201_CREATED)
async def create_review(
    *,
    db: Session = Depends(deps.get_db),
    review_in: ReviewCreate,
    admin: User = Depends(deps.require_admin),
    generator: ReviewGenerator = Depends(deps.get_review_generator),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    result = await question_review_service.generate(
        db, question_id=review_in.question_id, reviewer=admin, generator=generator, request_info=request_info
    )
    message = "Review generated successfully" if result.validation.is_valid else "Review generated but failed validation"
    return APIResponse(message=message, data=result)


@router.post("/batch", response_model=APIResponse[ReviewBatchResult])
async def create_batch_review(
    *,
    db: Session = Depends(deps.get_db),
    batch_in: ReviewBatchCreate,
    admin: User = Depends(deps.require_admin),
    generator: ReviewGenerator = Depends(deps.get_review_generator),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    result = await question_review_service.generate_batch(
        db,
        question_ids=batch_in.question_ids,
        batch_size=batch_in.batch_size,
        reviewer=admin,
        generator=generator,
        request_info=request_info,
    )
    return APIResponse(
        message=f"Processed {result.summary.total} questions: {result.summary.successful} successful, {result.summary.failed} failed",
        data=result,
    )


@router.get("/history", response_model=APIResponse[PaginatedResponse[QuestionReview]])
async def get_review_history(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.require_admin),
    question_id: Optional[int] = Query(None, alias="questionId"),
    review_status: Optional[ReviewStatusEnum] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
):
    history = question_review_service.get_history(
        db, question_id=question_id, review_status=review_status, page=page, size=size
    )
    return APIResponse(message="Review history retrieved successfully", data=history)


@router.get("/questions/{question_id}/latest", response_model=APIResponse[QuestionReview])
async def get_latest_review(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int,
    admin: User = Depends(deps.require_admin)
):
    review = question_review_service.load_latest(db, question_id)
    message = "Latest review retrieved successfully" if review else "No review exists for this question"
    return APIResponse(message=message, data=review)


@router.get("/questions/{question_id}/diff", response_model=APIResponse[ReviewDiff])
async def get_review_diff(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int,
    admin: User = Depends(deps.require_admin)
):
    diff = question_review_service.get_diff(db, question_id)
    return APIResponse(message="Review comparison retrieved successfully", data=diff)


@router.post("/{review_id}/decision", response_model=APIResponse[QuestionReview])
async def decide_review(
    *,
    db: Session = Depends(deps.get_db),
    review_id: int,
    decision_in: ReviewDecision,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    review = question_review_service.decide(
        db, review_id=review_id, decision=decision_in, approver=admin, request_info=request_info
    )
    message = "Review approved and question updated" if decision_in.approved else "Review rejected"
    return APIResponse(message=message, data=review)


@router.post("/{review_id}/approve", response_model=APIResponse[QuestionReview])
async def approve_review(
    *,
    db: Session = Depends(deps.get_db),
    review_id: int,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    review = question_review_service.approve(db, review_id=review_id, approver=admin, request_info=request_info)
    return APIResponse(message="Review approved and question updated", data=review)


@router.post("/{review_id}/reject", response_model=APIResponse[QuestionReview])
async def reject_review(
    *,
    db: Session = Depends(deps.get_db),
    review_id: int,
    rejection_in: ReviewRejection,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    review = question_review_service.reject(
        db, review_id=review_id, reason=rejection_in.reason, approver=admin, request_info=request_info
    )
    return APIResponse(message="Review rejected", data=review)
