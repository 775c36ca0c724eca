import asyncio
import logging
import math
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from app.core.constants import OPTION_LETTERS, SessionModeEnum, SessionStatusEnum
from app.core.exceptions import (
    InvalidAnswerError,
    InvalidSessionStateError,
    NavigationError,
    NoQuestionsAvailableError,
    QuestionAlreadyAnsweredError,
    SessionNotFoundError,
)
from app.core.scheduler import cancel_autosave, schedule_autosave
from app.engine.gateway import SessionGateway, is_guest_session
from app.engine.guest_gate import GuestGate
from app.engine.hints import Hints, MAX_HINT_LEVEL
from app.schemas.learning_session import LearningSession, LearningSessionUpdate
from app.schemas.practice import (
    AnswerOutcome,
    CompletionResult,
    HintOutcome,
    PracticeState,
    QuestionView,
    SolutionOutcome,
)
from app.schemas.question import Question
from app.schemas.session_answer import SessionAnswer, SessionAnswerCreate

logger = logging.getLogger(__name__)


class EngineStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ANSWERING = "answering"
    REVIEWING = "reviewing"
    PAUSED = "paused"
    COMPLETED = "completed"


ACTIVE_STATUSES = (EngineStatus.READY, EngineStatus.ANSWERING, EngineStatus.REVIEWING)


@dataclass(frozen=True)
class ModeRules:
    retries: bool
    hints: bool
    early_solution: bool
    gated_navigation: bool
    # Choices stay changeable and hidden until complete() grades them all
    grade_on_submit: bool


MODE_RULES: Dict[SessionModeEnum, ModeRules] = {
    SessionModeEnum.PRACTICE: ModeRules(
        retries=True, hints=True, early_solution=True, gated_navigation=True, grade_on_submit=False
    ),
    SessionModeEnum.TIMED: ModeRules(
        retries=False, hints=False, early_solution=False, gated_navigation=True, grade_on_submit=False
    ),
    SessionModeEnum.TEST: ModeRules(
        retries=False, hints=False, early_solution=False, gated_navigation=False, grade_on_submit=True
    ),
}


@dataclass
class QuestionProgress:
    attempts: int = 0
    max_hint_level: int = 0
    solution_viewed: bool = False
    solution_viewed_before_attempt: bool = False
    first_attempt_correct: Optional[bool] = None
    answered: bool = False
    last_choice: Optional[str] = None
    is_correct: bool = False
    time_spent: int = 0

    @classmethod
    def from_answer(cls, answer: SessionAnswer) -> "QuestionProgress":
        return cls(
            attempts=answer.attempt_count,
            max_hint_level=answer.hint_level or 0,
            solution_viewed=answer.solution_viewed,
            solution_viewed_before_attempt=answer.solution_viewed_before_attempt,
            first_attempt_correct=answer.first_attempt_correct,
            answered=True,
            last_choice=answer.user_answer,
            is_correct=answer.is_correct,
            time_spent=answer.time_spent_seconds,
        )


def display_score(score_percentage: float) -> int:
    """Round half up for display; storage keeps full precision."""
    return int(math.floor(score_percentage + 0.5))


class SessionEngine:
    """Drives one learner through the fixed, ordered question list of a session."""

    def __init__(
        self,
        session_id: str,
        gateway: SessionGateway,
        guest_gate: Optional[GuestGate] = None,
        clock: Callable[[], float] = time.monotonic,
        autosave: bool = True,
    ):
        self.session_id = session_id
        self.gateway = gateway
        self.guest_gate = guest_gate
        self.clock = clock
        self.autosave_enabled = autosave
        self.is_guest = is_guest_session(session_id)

        self.status = EngineStatus.LOADING
        self.session: Optional[LearningSession] = None
        self.questions: List[Question] = []
        self.hints: Dict[int, Hints] = {}
        self.progress: Dict[int, QuestionProgress] = {}
        self.missing_question_ids: List[int] = []
        self.planned_total = 0
        self.current_index = 0
        self.questions_answered = 0
        self.correct_answers = 0
        self.signup_required = False

        # View state for the question on screen
        self.selected_choice: Optional[str] = None
        self.revealed_hint_level = 0
        self.solution_visible = False
        self._question_shown_at: Optional[float] = None

        self._base_elapsed = 0
        self._running_since: Optional[float] = None
        self._completion: Optional[CompletionResult] = None

        self._write_lock = asyncio.Lock()
        self._revision = 0
        self._written_revision = 0
        self._autosave_scheduled = False

    # Loading

    async def initialize(self) -> PracticeState:
        session = await self.gateway.get_session(self.session_id)
        if session is None:
            raise SessionNotFoundError(self.session_id)
        self.session = session

        answers = await self.gateway.get_session_answers(self.session_id)
        question_ids = await self._resolve_question_ids(session, answers)
        if not question_ids:
            logger.warning(f"Session {self.session_id} has no questions after all fallbacks")
            raise NoQuestionsAvailableError(self.session_id)

        fetched = {q.id: q for q in await self.gateway.get_questions_by_ids(question_ids)}
        self.questions = [fetched[qid] for qid in question_ids if qid in fetched]
        self.missing_question_ids = [qid for qid in question_ids if qid not in fetched]
        self.planned_total = len(question_ids)
        if self.missing_question_ids:
            logger.warning(
                f"Session {self.session_id}: {len(self.missing_question_ids)} of {len(question_ids)} "
                f"questions could not be loaded: {self.missing_question_ids}"
            )
        if not self.questions:
            raise NoQuestionsAvailableError(self.session_id)

        self.hints = {q.id: Hints.from_question(q) for q in self.questions}
        self.progress = {q.id: QuestionProgress() for q in self.questions}
        self._restore_answers(answers)

        self._base_elapsed = session.time_spent_seconds or 0
        self.current_index = self._clamp(session.last_question_index or 0)
        self._enter_question()

        if session.status == SessionStatusEnum.COMPLETED:
            self.status = EngineStatus.COMPLETED
            score = session.score_percentage
            if score is None:
                score = self._score()
            self._completion = self._completion_result(score, self._base_elapsed)
        elif session.status == SessionStatusEnum.PAUSED:
            self.status = EngineStatus.PAUSED
        else:
            self._start_running()

        logger.info(
            f"Session {self.session_id} loaded: {len(self.questions)} questions, "
            f"{self.questions_answered} answered, status={self.status.value}"
        )
        return self.view()

    async def _resolve_question_ids(self, session: LearningSession, answers: List[SessionAnswer]) -> List[int]:
        if session.question_ids:
            return list(dict.fromkeys(session.question_ids))

        answered_ids = list(dict.fromkeys(a.question_id for a in answers))
        if answered_ids:
            logger.info(f"Session {self.session_id} has no stored question list; using recorded answers")
            return answered_ids

        logger.info(f"Session {self.session_id} has no stored question list; selecting questions")
        return list(dict.fromkeys(await self.gateway.select_questions(session)))

    def _restore_answers(self, answers: List[SessionAnswer]) -> None:
        for answer in answers:
            if answer.question_id in self.progress:
                self.progress[answer.question_id] = QuestionProgress.from_answer(answer)

        restored = [p for p in self.progress.values() if p.answered]
        if restored:
            self.questions_answered = len(restored)
            self.correct_answers = sum(1 for p in restored if p.is_correct)
        elif self.session is not None and not self.rules.grade_on_submit:
            # Test-mode choices are never stored before grading
            self.questions_answered = self.session.questions_answered or 0
            self.correct_answers = self.session.correct_answers or 0

    # Learner actions

    async def select_answer(self, question_id: int, choice: str, force: bool = False) -> AnswerOutcome:
        self._ensure_active()
        question = self._require_current(question_id)
        choice = (choice or "").strip().upper()
        if choice not in OPTION_LETTERS or not self._option_text(question, choice):
            raise InvalidAnswerError(f"Option {choice or '?'} is not available for question {question_id}")
        if self.is_time_up():
            raise InvalidSessionStateError("Time is up for this session", {"session_id": self.session_id})

        progress = self.progress[question_id]
        if progress.answered:
            raise QuestionAlreadyAnsweredError(question_id)
        if self.rules.grade_on_submit:
            return await self._record_selection(question, progress, choice)

        if self.is_guest and self.guest_gate is not None:
            decision = await self.guest_gate.check()
            if not decision.allowed:
                return self._refused(question_id, progress, decision.used)

        is_correct = choice == question.correct_answer
        force = force or not self.rules.retries
        updated = replace(progress, attempts=progress.attempts + 1, last_choice=choice)
        if updated.first_attempt_correct is None:
            updated.first_attempt_correct = is_correct

        if not (is_correct or force):
            self.progress[question_id] = updated
            self.selected_choice = choice
            self.status = EngineStatus.ANSWERING
            self._touch()
            return AnswerOutcome(
                question_id=question_id,
                accepted=True,
                answered=False,
                is_correct=False,
                attempt_count=updated.attempts,
            )

        guest_used = None
        if self.is_guest and self.guest_gate is not None:
            decision = await self.guest_gate.reserve()
            if not decision.allowed:
                return self._refused(question_id, progress, decision.used)
            guest_used = decision.used
            self.signup_required = decision.signup_required

        updated.answered = True
        updated.is_correct = is_correct
        updated.time_spent = progress.time_spent + self._seconds_on_question()
        if not self.is_guest:
            await self.gateway.create_session_answer(self.session_id, self._answer_payload(question, updated))

        # Answer is durable from here on
        self.progress[question_id] = updated
        self.questions_answered += 1
        if is_correct:
            self.correct_answers += 1
        self.selected_choice = choice
        self.solution_visible = True
        self.status = EngineStatus.REVIEWING
        self._question_shown_at = self.clock()
        self._touch()

        if not self.is_guest:
            await self._push_progress_quietly()

        return AnswerOutcome(
            question_id=question_id,
            accepted=True,
            answered=True,
            is_correct=is_correct,
            attempt_count=updated.attempts,
            signup_required=self.signup_required,
            guest_questions_used=guest_used,
        )

    async def _record_selection(self, question: Question, progress: QuestionProgress, choice: str) -> AnswerOutcome:
        """Test mode: keep the latest choice without feedback; grading happens in complete()."""
        first_choice = progress.last_choice is None
        guest_used = None
        if first_choice and self.is_guest and self.guest_gate is not None:
            decision = await self.guest_gate.reserve()
            if not decision.allowed:
                return self._refused(question.id, progress, decision.used)
            guest_used = decision.used
            self.signup_required = decision.signup_required

        progress.last_choice = choice
        progress.attempts = 1
        progress.time_spent += self._seconds_on_question()
        self._question_shown_at = self.clock()
        if first_choice:
            self.questions_answered += 1
        self.selected_choice = choice
        self.status = EngineStatus.ANSWERING
        self._touch()
        return AnswerOutcome(
            question_id=question.id,
            accepted=True,
            answered=False,
            is_correct=None,
            attempt_count=1,
            signup_required=self.signup_required,
            guest_questions_used=guest_used,
        )

    def _refused(self, question_id: int, progress: QuestionProgress, used: int) -> AnswerOutcome:
        self.signup_required = True
        return AnswerOutcome(
            question_id=question_id,
            accepted=False,
            answered=False,
            is_correct=False,
            attempt_count=progress.attempts,
            signup_required=True,
            guest_questions_used=used,
        )

    def request_hint(self, level: int) -> HintOutcome:
        self._ensure_active()
        question = self.current_question
        progress = self.progress[question.id]
        hints = self.hints[question.id]

        if level <= progress.max_hint_level:
            return HintOutcome(question_id=question.id, level=level, hint=hints.at(level), unlocked=True)

        locked = HintOutcome(question_id=question.id, level=level, hint=None, unlocked=False)
        if not self.rules.hints or progress.answered or level < 1 or level > MAX_HINT_LEVEL:
            return locked
        if level != progress.max_hint_level + 1:
            return locked
        text = hints.at(level)
        if text is None:
            return locked

        progress.max_hint_level = level
        self.revealed_hint_level = level
        if self.status == EngineStatus.READY:
            self.status = EngineStatus.ANSWERING
        self._touch()
        return HintOutcome(question_id=question.id, level=level, hint=text, unlocked=True)

    def toggle_solution(self) -> SolutionOutcome:
        if self.status == EngineStatus.LOADING:
            raise InvalidSessionStateError("Session is not loaded")
        question = self.current_question
        progress = self.progress[question.id]
        if not (self.rules.early_solution or progress.answered or self.status == EngineStatus.COMPLETED):
            raise InvalidSessionStateError(
                f"Solutions open after answering in {self.rules_mode.value} mode", {"question_id": question.id}
            )

        self.solution_visible = not self.solution_visible
        if self.solution_visible:
            if not progress.answered and not progress.solution_viewed:
                progress.solution_viewed_before_attempt = True
                logger.debug(f"Solution for question {question.id} revealed before an answer in {self.session_id}")
            progress.solution_viewed = True
            self._touch()
        return SolutionOutcome(
            question_id=question.id,
            visible=self.solution_visible,
            viewed_before_attempt=progress.solution_viewed_before_attempt,
        )

    def advance(self) -> PracticeState:
        self._ensure_navigable()
        gated = self.rules.gated_navigation and self.status != EngineStatus.COMPLETED
        if gated and not self.progress[self.current_question.id].answered:
            raise NavigationError("Answer the current question before moving on")
        self._move_to(self.current_index + 1)
        return self.view()

    def retreat(self) -> PracticeState:
        self._ensure_navigable()
        self._move_to(self.current_index - 1)
        return self.view()

    def jump_to(self, index: int) -> PracticeState:
        self._ensure_navigable()
        if index < 0 or index >= len(self.questions):
            raise NavigationError(f"Question index {index} is out of range", {"index": index})
        self._move_to(index)
        return self.view()

    # Lifecycle

    async def pause(self) -> PracticeState:
        if self.status == EngineStatus.COMPLETED:
            raise InvalidSessionStateError("A completed session cannot be paused")
        if self.status == EngineStatus.LOADING:
            raise InvalidSessionStateError("Session is not loaded")
        if self.status == EngineStatus.PAUSED:
            return self.view()

        elapsed = self.elapsed_seconds()
        if not self.is_guest:
            await self._write_progress(
                status=SessionStatusEnum.PAUSED,
                paused_at=datetime.now(timezone.utc),
                time_spent_seconds=elapsed,
            )

        self._base_elapsed = elapsed
        self._running_since = None
        self.status = EngineStatus.PAUSED
        self._stop_autosave()
        logger.info(f"Session {self.session_id} paused at question {self.current_index}")
        return self.view()

    async def resume(self) -> PracticeState:
        if self.status == EngineStatus.COMPLETED:
            raise InvalidSessionStateError("A completed session cannot be resumed")
        if self.status == EngineStatus.LOADING:
            raise InvalidSessionStateError("Session is not loaded")
        if self.status != EngineStatus.PAUSED:
            return self.view()

        if not self.is_guest:
            await self._write_progress(status=SessionStatusEnum.IN_PROGRESS, paused_at=None)

        self._start_running()
        self._enter_question()
        logger.info(f"Session {self.session_id} resumed at question {self.current_index}")
        return self.view()

    async def complete(self) -> CompletionResult:
        if self._completion is not None:
            return self._completion
        if self.status == EngineStatus.LOADING:
            raise InvalidSessionStateError("Session is not loaded")

        if self.rules.grade_on_submit:
            await self._grade_selections()
        score = self._score()
        time_spent = await self._total_time_spent()
        if not self.is_guest:
            await self.gateway.complete_session(
                self.session_id,
                score_percentage=score,
                time_spent_seconds=time_spent,
                correct_answers=self.correct_answers,
                total_questions=self.planned_total,
                user_id=self.session.user_id if self.session else None,
            )

        self._base_elapsed = self.elapsed_seconds()
        self._running_since = None
        self.status = EngineStatus.COMPLETED
        self._stop_autosave()
        self._completion = self._completion_result(score, time_spent)
        logger.info(
            f"Session {self.session_id} completed: {self.correct_answers}/{self.planned_total} "
            f"({self._completion.display_score}%)"
        )
        return self._completion

    async def _grade_selections(self) -> None:
        """Turn test-mode choices into answers, one attempt each; state changes only once all writes succeed."""
        graded: Dict[int, QuestionProgress] = {}
        for question in self.questions:
            progress = self.progress[question.id]
            if progress.answered or progress.last_choice is None:
                continue
            is_correct = progress.last_choice == question.correct_answer
            graded[question.id] = replace(
                progress, answered=True, is_correct=is_correct, attempts=1, first_attempt_correct=is_correct
            )
            if not self.is_guest:
                await self.gateway.create_session_answer(
                    self.session_id, self._answer_payload(question, graded[question.id])
                )

        self.progress.update(graded)
        answered = [p for p in self.progress.values() if p.answered]
        self.questions_answered = len(answered)
        self.correct_answers = sum(1 for p in answered if p.is_correct)
        logger.info(f"Graded {len(graded)} test answers for session {self.session_id}")

    async def autosave_tick(self) -> None:
        """Periodic best-effort progress push; failures are logged and dropped."""
        if self.is_guest or self.status not in ACTIVE_STATUSES:
            return
        revision = self._revision
        changes = self._progress_snapshot()
        async with self._write_lock:
            if revision < self._written_revision:
                logger.debug(f"Dropping stale autosave for session {self.session_id} (revision {revision})")
                return
            try:
                await self.gateway.update_session(self.session_id, changes)
            except Exception as e:
                logger.warning(f"Autosave failed for session {self.session_id}: {e}")
                return
            self._written_revision = max(self._written_revision, revision)

    async def close(self) -> None:
        await self.autosave_tick()
        self._stop_autosave()

    # Timing

    def elapsed_seconds(self) -> int:
        running = 0
        if self._running_since is not None:
            running = int(self.clock() - self._running_since)
        return self._base_elapsed + running

    def time_remaining_seconds(self) -> Optional[int]:
        if self.session is None or self.session.mode != SessionModeEnum.TIMED:
            return None
        if not self.session.time_limit_seconds:
            return None
        return max(0, self.session.time_limit_seconds - self.elapsed_seconds())

    def is_time_up(self) -> bool:
        remaining = self.time_remaining_seconds()
        return remaining is not None and remaining <= 0

    # Views

    @property
    def rules_mode(self) -> SessionModeEnum:
        return self.session.mode if self.session else SessionModeEnum.PRACTICE

    @property
    def rules(self) -> ModeRules:
        return MODE_RULES[self.rules_mode]

    @property
    def current_question(self) -> Question:
        if not self.questions:
            raise InvalidSessionStateError("Session is not loaded")
        return self.questions[self.current_index]

    def display_score(self) -> int:
        return display_score(self._score())

    def view(self) -> PracticeState:
        question = self.current_question if self.questions else None
        progress = self.progress.get(question.id) if question else None
        revealed: List[str] = []
        if question is not None:
            hints = self.hints[question.id]
            revealed = [hints.at(level) for level in range(1, self.revealed_hint_level + 1) if hints.at(level)]

        return PracticeState(
            session_id=self.session_id,
            status=self.status.value,
            mode=self.session.mode.value if self.session else SessionModeEnum.PRACTICE.value,
            is_guest=self.is_guest,
            current_index=self.current_index,
            total_questions=len(self.questions),
            question=self._question_view(question, progress) if question else None,
            show_passage=self._show_passage(),
            selected_choice=self.selected_choice,
            answered=bool(progress and progress.answered),
            revealed_hints=revealed,
            hint_level=self.revealed_hint_level,
            solution_visible=self.solution_visible,
            solution_viewed_before_attempt=bool(progress and progress.solution_viewed_before_attempt),
            attempt_count=progress.attempts if progress else 0,
            questions_answered=self.questions_answered,
            correct_answers=self.correct_answers,
            elapsed_seconds=self.elapsed_seconds(),
            time_remaining_seconds=self.time_remaining_seconds(),
            signup_required=self.signup_required,
            missing_question_ids=list(self.missing_question_ids),
        )

    def _question_view(self, question: Question, progress: QuestionProgress) -> QuestionView:
        reveal = progress.answered or self.solution_visible or self.status == EngineStatus.COMPLETED
        options = {}
        for letter in OPTION_LETTERS:
            text = self._option_text(question, letter)
            if text:
                options[letter] = text
        return QuestionView(
            id=question.id,
            topic_id=question.topic_id,
            question_text=question.question_text,
            passage=question.passage,
            question_image_url=question.question_image_url,
            options=options,
            hints_available=self.hints[question.id].available,
            correct_answer=question.correct_answer if reveal else None,
            explanation=question.explanation if reveal else None,
            solution=question.solution if reveal else None,
        )

    def _show_passage(self) -> bool:
        if not self.questions:
            return False
        question = self.current_question
        if not question.passage:
            return False
        if self.current_index == 0 or question.passage_id is None:
            return True
        return self.questions[self.current_index - 1].passage_id != question.passage_id

    # Internals

    def _ensure_active(self) -> None:
        if self.status == EngineStatus.LOADING:
            raise InvalidSessionStateError("Session is not loaded")
        if self.status == EngineStatus.PAUSED:
            raise InvalidSessionStateError("Session is paused; resume it first")
        if self.status == EngineStatus.COMPLETED:
            raise InvalidSessionStateError("Session is already completed")

    def _ensure_navigable(self) -> None:
        if self.status == EngineStatus.LOADING:
            raise InvalidSessionStateError("Session is not loaded")
        if self.status == EngineStatus.PAUSED:
            raise InvalidSessionStateError("Session is paused; resume it first")

    def _require_current(self, question_id: int) -> Question:
        question = self.current_question
        if question.id != question_id:
            if question_id in self.progress:
                raise NavigationError(
                    f"Question {question_id} is not the current question",
                    {"current_question_id": question.id},
                )
            raise InvalidAnswerError(f"Question {question_id} is not part of this session")
        return question

    @staticmethod
    def _option_text(question: Question, letter: str) -> Optional[str]:
        text = getattr(question, f"option_{letter.lower()}", None)
        if text is None or not text.strip():
            return None
        return text

    def _clamp(self, index: int) -> int:
        return max(0, min(index, len(self.questions) - 1))

    def _move_to(self, index: int) -> None:
        index = self._clamp(index)
        if index == self.current_index:
            return
        self.current_index = index
        self._enter_question()
        self._touch()

    def _enter_question(self) -> None:
        progress = self.progress[self.current_question.id]
        keep_choice = progress.answered or self.rules.grade_on_submit
        self.selected_choice = progress.last_choice if keep_choice else None
        self.revealed_hint_level = progress.max_hint_level
        self.solution_visible = progress.solution_viewed or progress.answered
        self._question_shown_at = self.clock()
        if self.status in ACTIVE_STATUSES or self.status == EngineStatus.LOADING:
            if progress.answered:
                self.status = EngineStatus.REVIEWING
            elif progress.attempts or progress.max_hint_level:
                self.status = EngineStatus.ANSWERING
            else:
                self.status = EngineStatus.READY

    def _seconds_on_question(self) -> int:
        if self._question_shown_at is None:
            return 0
        return max(0, int(self.clock() - self._question_shown_at))

    def _start_running(self) -> None:
        self._running_since = self.clock()
        if self.status in (EngineStatus.LOADING, EngineStatus.PAUSED):
            self.status = EngineStatus.READY
        if self.autosave_enabled and not self.is_guest:
            schedule_autosave(self.session_id, self.autosave_tick)
            self._autosave_scheduled = True

    def _stop_autosave(self) -> None:
        if self._autosave_scheduled:
            cancel_autosave(self.session_id)
            self._autosave_scheduled = False

    def _touch(self) -> None:
        self._revision += 1

    def _progress_snapshot(self, **extra) -> LearningSessionUpdate:
        fields = {
            "questions_answered": self.questions_answered,
            "correct_answers": self.correct_answers,
            "last_question_index": self.current_index,
            "time_spent_seconds": self.elapsed_seconds(),
        }
        fields.update(extra)
        return LearningSessionUpdate(**fields)

    async def _write_progress(self, **extra) -> None:
        """Explicit progress write; raises on failure."""
        self._touch()
        revision = self._revision
        changes = self._progress_snapshot(**extra)
        async with self._write_lock:
            await self.gateway.update_session(self.session_id, changes)
            self._written_revision = max(self._written_revision, revision)

    async def _push_progress_quietly(self) -> None:
        try:
            await self._write_progress()
        except Exception as e:
            logger.warning(f"Progress update after answer failed for session {self.session_id}: {e}")

    def _answer_payload(self, question: Question, progress: QuestionProgress) -> SessionAnswerCreate:
        return SessionAnswerCreate(
            question_id=question.id,
            topic_id=question.topic_id,
            user_answer=progress.last_choice,
            is_correct=progress.is_correct,
            time_spent_seconds=progress.time_spent,
            hint_used=progress.max_hint_level > 0,
            hint_level=progress.max_hint_level or None,
            solution_viewed=progress.solution_viewed,
            solution_viewed_before_attempt=progress.solution_viewed_before_attempt,
            attempt_count=progress.attempts,
            first_attempt_correct=progress.first_attempt_correct,
        )

    def _score(self) -> float:
        # Questions that failed to load still count as unanswered
        total = self.planned_total or len(self.questions)
        if not total:
            return 0.0
        return self.correct_answers * 100 / total

    async def _total_time_spent(self) -> int:
        if self.is_guest:
            return sum(p.time_spent for p in self.progress.values()) or self.elapsed_seconds()
        try:
            answers = await self.gateway.get_session_answers(self.session_id)
            return sum(a.time_spent_seconds for a in answers)
        except Exception as e:
            logger.warning(f"Could not total answer time for session {self.session_id}, using session clock: {e}")
            return self.elapsed_seconds()

    def _completion_result(self, score: float, time_spent: int) -> CompletionResult:
        return CompletionResult(
            session_id=self.session_id,
            score_percentage=score,
            display_score=display_score(score),
            correct_answers=self.correct_answers,
            total_questions=self.planned_total or len(self.questions),
            time_spent_seconds=time_spent,
        )
