from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime

from app.core.constants import ReviewStatusEnum, ReviewTypeEnum

class ReviewCreate(BaseModel):
    question_id: int = Field(..., alias="questionId")

    model_config = ConfigDict(populate_by_name=True)

class ReviewBatchCreate(BaseModel):
    question_ids: List[int] = Field(..., alias="questionIds", min_length=1)
    batch_size: Optional[int] = Field(None, alias="batchSize", gt=0)

    model_config = ConfigDict(populate_by_name=True)

class ReviewDecision(BaseModel):
    approved: bool
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def reason_required_for_rejection(self):
        if not self.approved and (not self.rejection_reason or not self.rejection_reason.strip()):
            raise ValueError("rejectionReason is required when rejecting a review")
        return self

class ReviewRejection(BaseModel):
    reason: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def not_blank(self):
        if not self.reason.strip():
            raise ValueError("reason cannot be blank")
        return self

class QuestionReviewCreate(BaseModel):
    question_id: int
    reviewer_id: int
    review_type: ReviewTypeEnum = ReviewTypeEnum.SINGLE
    status: ReviewStatusEnum = ReviewStatusEnum.PENDING
    proposed_hint1: Optional[str] = None
    proposed_hint2: Optional[str] = None
    proposed_hint3: Optional[str] = None
    proposed_solution: Optional[str] = None
    proposed_explanation: Optional[str] = None
    model_used: Optional[str] = None
    tokens_used: Optional[int] = None
    review_duration_ms: Optional[int] = None
    error_message: Optional[str] = None

class QuestionReviewUpdate(BaseModel):
    status: Optional[ReviewStatusEnum] = None
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

class QuestionReview(BaseModel):
    id: int
    question_id: int
    reviewer_id: int
    review_type: ReviewTypeEnum
    status: ReviewStatusEnum
    proposed_hint1: Optional[str] = None
    proposed_hint2: Optional[str] = None
    proposed_hint3: Optional[str] = None
    proposed_solution: Optional[str] = None
    proposed_explanation: Optional[str] = None
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    model_used: Optional[str] = None
    tokens_used: Optional[int] = None
    review_duration_ms: Optional[int] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ReviewValidation(BaseModel):
    is_valid: bool
    issues: List[str] = []
    warnings: List[str] = []

class GeneratedReview(BaseModel):
    hint1: str = ""
    hint2: str = ""
    hint3: str = ""
    solution: str = ""
    explanation: str = ""
    tokens_used: Optional[int] = None

class ReviewWithValidation(BaseModel):
    review: QuestionReview
    validation: Optional[ReviewValidation] = None

class ReviewBatchItem(BaseModel):
    question_id: int
    success: bool
    review_id: Optional[int] = None
    error: Optional[str] = None

class ReviewBatchSummary(BaseModel):
    total: int
    successful: int
    failed: int

class ReviewBatchResult(BaseModel):
    results: List[ReviewBatchItem]
    summary: ReviewBatchSummary

class ReviewDiffField(BaseModel):
    field: str
    current: Optional[str] = None
    proposed: Optional[str] = None
    changed: bool

class ReviewDiff(BaseModel):
    review: QuestionReview
    fields: List[ReviewDiffField]
    actionable: bool
