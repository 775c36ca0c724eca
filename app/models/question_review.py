from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base, StrEnum
from app.core.constants import ReviewStatusEnum, ReviewTypeEnum

class QuestionReview(Base):
    __tablename__ = "question_reviews"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    review_type = Column(StrEnum(ReviewTypeEnum), nullable=False, default=ReviewTypeEnum.SINGLE)
    status = Column(StrEnum(ReviewStatusEnum), nullable=False, default=ReviewStatusEnum.PENDING, index=True)

    proposed_hint1 = Column(Text, nullable=True)
    proposed_hint2 = Column(Text, nullable=True)
    proposed_hint3 = Column(Text, nullable=True)
    proposed_solution = Column(Text, nullable=True)
    proposed_explanation = Column(Text, nullable=True)

    approver_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    model_used = Column(String, nullable=True)
    tokens_used = Column(Integer, nullable=True)
    review_duration_ms = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    question = relationship("Question", back_populates="reviews")
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    approver = relationship("User", foreign_keys=[approver_id])
