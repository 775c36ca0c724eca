from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Dict, Literal

class AnswerSubmission(BaseModel):
    question_id: int
    choice: Literal["A", "B", "C", "D", "E"]
    force: bool = False

class HintRequest(BaseModel):
    level: int = Field(..., ge=1, le=3)

class NavigationRequest(BaseModel):
    direction: Optional[Literal["next", "previous"]] = None
    index: Optional[int] = None

    @model_validator(mode="after")
    def one_target(self):
        if (self.direction is None) == (self.index is None):
            raise ValueError("Provide exactly one of direction or index")
        return self

class QuestionView(BaseModel):
    id: int
    topic_id: Optional[int] = None
    question_text: str
    passage: Optional[str] = None
    question_image_url: Optional[str] = None
    options: Dict[str, str]
    hints_available: int
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    solution: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class PracticeState(BaseModel):
    session_id: str
    status: str
    mode: str
    is_guest: bool
    current_index: int
    total_questions: int
    question: Optional[QuestionView] = None
    show_passage: bool = False
    selected_choice: Optional[str] = None
    answered: bool = False
    revealed_hints: List[str] = []
    hint_level: int = 0
    solution_visible: bool = False
    solution_viewed_before_attempt: bool = False
    attempt_count: int = 0
    questions_answered: int = 0
    correct_answers: int = 0
    elapsed_seconds: int = 0
    time_remaining_seconds: Optional[int] = None
    signup_required: bool = False
    missing_question_ids: List[int] = []

    model_config = ConfigDict(from_attributes=True)

class AnswerOutcome(BaseModel):
    question_id: int
    accepted: bool
    answered: bool
    # None while a test-mode choice is still ungraded
    is_correct: Optional[bool] = None
    attempt_count: int
    signup_required: bool = False
    guest_questions_used: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class HintOutcome(BaseModel):
    question_id: int
    level: int
    hint: Optional[str] = None
    unlocked: bool

    model_config = ConfigDict(from_attributes=True)

class SolutionOutcome(BaseModel):
    question_id: int
    visible: bool
    viewed_before_attempt: bool

    model_config = ConfigDict(from_attributes=True)

class CompletionResult(BaseModel):
    session_id: str
    score_percentage: float
    display_score: int
    correct_answers: int
    total_questions: int
    time_spent_seconds: int

    model_config = ConfigDict(from_attributes=True)
