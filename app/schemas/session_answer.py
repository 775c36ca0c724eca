from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Literal
from datetime import datetime

class SessionAnswerCreate(BaseModel):
    """Payload for recording one answer; accepts camelCase or snake_case keys."""
    question_id: int
    topic_id: Optional[int] = None
    user_answer: Optional[Literal["A", "B", "C", "D", "E"]] = None
    is_correct: bool
    time_spent_seconds: int = Field(0, ge=0)
    hint_used: bool = False
    hint_level: Optional[Literal[1, 2, 3]] = None
    solution_viewed: bool = False
    solution_viewed_before_attempt: bool = False
    attempt_count: int = Field(1, ge=1)
    first_attempt_correct: Optional[bool] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class SessionAnswer(BaseModel):
    id: int
    session_id: str
    question_id: int
    topic_id: Optional[int] = None
    user_answer: Optional[str] = None
    is_correct: bool
    time_spent_seconds: int
    hint_used: bool
    hint_level: Optional[int] = None
    solution_viewed: bool
    solution_viewed_before_attempt: bool
    attempt_count: int
    first_attempt_correct: Optional[bool] = None
    answered_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
