from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base, StrEnum
from app.core.constants import SessionModeEnum, SessionStatusEnum

class LearningSession(Base):
    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=True)
    topic_ids = Column(JSON, nullable=True)
    question_ids = Column(JSON, nullable=True)  # fixed, ordered at creation time
    mode = Column(StrEnum(SessionModeEnum), nullable=False, default=SessionModeEnum.PRACTICE)
    total_questions = Column(Integer, nullable=False)
    time_limit_seconds = Column(Integer, nullable=True)
    status = Column(StrEnum(SessionStatusEnum), nullable=False, default=SessionStatusEnum.IN_PROGRESS, index=True)

    questions_answered = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    last_question_index = Column(Integer, nullable=False, default=0)
    score_percentage = Column(Float, nullable=True)

    started_at = Column(DateTime(timezone=True), server_default=func.now())
    paused_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="sessions")
    answers = relationship("SessionAnswer", back_populates="session", cascade="all, delete-orphan")
