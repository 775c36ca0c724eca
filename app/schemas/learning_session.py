from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime

from app.core.constants import SessionModeEnum, SessionStatusEnum

class LearningSessionCreate(BaseModel):
    subject_id: int
    topic_id: Optional[int] = None
    topic_ids: Optional[List[int]] = None
    mode: SessionModeEnum = SessionModeEnum.PRACTICE
    total_questions: int = Field(..., gt=0, le=200)
    time_limit_seconds: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def normalize_topics(self):
        topic_ids = self.topic_ids or ([self.topic_id] if self.topic_id else [])
        if not topic_ids:
            raise ValueError("topic_id or topic_ids is required")
        self.topic_ids = topic_ids
        self.topic_id = self.topic_id or topic_ids[0]
        if self.mode == SessionModeEnum.TIMED and not self.time_limit_seconds:
            raise ValueError("time_limit_seconds is required for timed sessions")
        return self

class LearningSessionUpdate(BaseModel):
    status: Optional[SessionStatusEnum] = None
    last_question_index: Optional[int] = Field(None, ge=0)
    time_spent_seconds: Optional[int] = Field(None, ge=0)
    questions_answered: Optional[int] = Field(None, ge=0)
    correct_answers: Optional[int] = Field(None, ge=0)
    paused_at: Optional[datetime] = None

class LearningSessionComplete(BaseModel):
    score_percentage: float = Field(..., ge=0, le=100)
    time_spent_seconds: Optional[int] = Field(None, ge=0)
    correct_answers: Optional[int] = Field(None, ge=0)
    total_questions: Optional[int] = Field(None, ge=0)

class LearningSession(BaseModel):
    id: str
    user_id: Optional[int] = None
    subject_id: int
    topic_id: Optional[int] = None
    topic_ids: Optional[List[int]] = None
    question_ids: Optional[List[int]] = None
    mode: SessionModeEnum
    total_questions: int
    time_limit_seconds: Optional[int] = None
    status: SessionStatusEnum
    questions_answered: int = 0
    correct_answers: int = 0
    time_spent_seconds: int = 0
    last_question_index: int = 0
    score_percentage: Optional[float] = None
    started_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def backfill_topic_ids(self):
        if not self.topic_ids and self.topic_id:
            self.topic_ids = [self.topic_id]
        return self

class LearningSessionSummary(BaseModel):
    id: str
    subject_id: int
    mode: SessionModeEnum
    status: SessionStatusEnum
    total_questions: int
    questions_answered: int = 0
    correct_answers: int = 0
    score_percentage: Optional[float] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ResumeCheck(BaseModel):
    can_resume: bool
    has_answers: bool
    question_count: int
    reason: Optional[str] = None
