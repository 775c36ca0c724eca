from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime

from app.core.constants import QuestionStatusEnum, DifficultyEnum, BulkQuestionActionEnum

OptionLetter = Literal["A", "B", "C", "D", "E"]

class QuestionBase(BaseModel):
    subject_id: int
    topic_id: int
    question_text: str = Field(..., min_length=1)
    passage_id: Optional[int] = None
    passage: Optional[str] = None
    question_image_url: Optional[str] = None
    option_a: str
    option_b: str
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    option_e: Optional[str] = None
    correct_answer: OptionLetter
    explanation: Optional[str] = None
    hint: Optional[str] = None
    hint1: Optional[str] = None
    hint2: Optional[str] = None
    hint3: Optional[str] = None
    solution: Optional[str] = None
    difficulty: Optional[DifficultyEnum] = None
    exam_type: Optional[str] = None
    exam_year: Optional[int] = None
    status: QuestionStatusEnum = QuestionStatusEnum.DRAFT

    model_config = ConfigDict(use_enum_values=True)

class QuestionCreate(QuestionBase):
    @model_validator(mode="after")
    def correct_answer_has_option(self):
        option = getattr(self, f"option_{self.correct_answer.lower()}")
        if not option or not option.strip():
            raise ValueError(f"correct_answer {self.correct_answer} must reference a non-empty option")
        return self

class QuestionUpdate(BaseModel):
    subject_id: Optional[int] = None
    topic_id: Optional[int] = None
    question_text: Optional[str] = None
    passage_id: Optional[int] = None
    passage: Optional[str] = None
    question_image_url: Optional[str] = None
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    option_e: Optional[str] = None
    correct_answer: Optional[OptionLetter] = None
    explanation: Optional[str] = None
    hint: Optional[str] = None
    hint1: Optional[str] = None
    hint2: Optional[str] = None
    hint3: Optional[str] = None
    solution: Optional[str] = None
    difficulty: Optional[DifficultyEnum] = None
    exam_type: Optional[str] = None
    exam_year: Optional[int] = None
    status: Optional[QuestionStatusEnum] = None

    model_config = ConfigDict(use_enum_values=True)

class Question(QuestionBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class QuestionIdsRequest(BaseModel):
    question_ids: List[int] = Field(..., alias="questionIds")

    model_config = ConfigDict(populate_by_name=True)

class QuestionBulkAction(BaseModel):
    question_ids: List[int] = Field(..., min_length=1)
    action: BulkQuestionActionEnum

class QuestionBulkResult(BaseModel):
    action: BulkQuestionActionEnum
    affected: int
