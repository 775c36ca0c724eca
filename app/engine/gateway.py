import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import GUEST_SESSION_PREFIX
from app.core.database import SessionLocal
from app.core.exceptions import GatewayError
from app.crud.question import question as question_crud
from app.crud.session_answer import session_answer as session_answer_crud
from app.schemas.learning_session import LearningSession, LearningSessionUpdate
from app.schemas.question import Question
from app.schemas.session_answer import SessionAnswer, SessionAnswerCreate

logger = logging.getLogger(__name__)


def is_guest_session(session_id: str) -> bool:
    return session_id.startswith(GUEST_SESSION_PREFIX)


class SessionGateway(ABC):
    """Data-access boundary used by the session engine. Every call is a suspension point."""

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[LearningSession]:
        """Return the session or None when it does not exist."""

    @abstractmethod
    async def get_session_answers(self, session_id: str) -> List[SessionAnswer]:
        pass

    @abstractmethod
    async def get_questions_by_ids(self, question_ids: Sequence[int]) -> List[Question]:
        """Return the questions that exist, in any order."""

    @abstractmethod
    async def select_questions(self, session: LearningSession) -> List[int]:
        pass

    @abstractmethod
    async def create_session_answer(self, session_id: str, answer_in: SessionAnswerCreate) -> Optional[SessionAnswer]:
        pass

    @abstractmethod
    async def update_session(self, session_id: str, changes: LearningSessionUpdate) -> None:
        pass

    @abstractmethod
    async def complete_session(
        self,
        session_id: str,
        *,
        score_percentage: float,
        time_spent_seconds: int,
        correct_answers: int,
        total_questions: int,
        user_id: Optional[int] = None,
    ) -> None:
        pass


class DatabaseSessionGateway(SessionGateway):
    """SQLAlchemy-backed gateway; guest sessions are read from the cache and never written."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def _db(self, operation: str) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise GatewayError(f"Failed to {operation}") from e
        finally:
            db.close()

    async def get_session(self, session_id: str) -> Optional[LearningSession]:
        from app.services.learning_session import learning_session_service

        if is_guest_session(session_id):
            return await learning_session_service.load_guest_session(session_id)
        with self._db("load session") as db:
            return learning_session_service.find_session(db, session_id)

    async def get_session_answers(self, session_id: str) -> List[SessionAnswer]:
        if is_guest_session(session_id):
            return []
        with self._db("load session answers") as db:
            answers = session_answer_crud.get_all_by_session(db, session_id=session_id)
            return [SessionAnswer.model_validate(a) for a in answers]

    async def get_questions_by_ids(self, question_ids: Sequence[int]) -> List[Question]:
        from app.core.config import settings

        with self._db("load questions") as db:
            questions = question_crud.get_by_ids(
                db, question_ids=question_ids, batch_size=settings.QUESTION_FETCH_BATCH_SIZE
            )
            return [Question.model_validate(q) for q in questions]

    async def select_questions(self, session: LearningSession) -> List[int]:
        from app.services.learning_session import learning_session_service

        with self._db("select questions") as db:
            return learning_session_service.select_question_ids(
                db,
                topic_ids=session.topic_ids or [],
                total_questions=session.total_questions,
                user_id=session.user_id,
            )

    async def create_session_answer(self, session_id: str, answer_in: SessionAnswerCreate) -> Optional[SessionAnswer]:
        if is_guest_session(session_id):
            logger.debug(f"Skipping answer write for guest session {session_id}")
            return None
        with self._db("record answer") as db:
            answer = session_answer_crud.upsert(db, session_id=session_id, obj_in=answer_in)
            return SessionAnswer.model_validate(answer)

    async def update_session(self, session_id: str, changes: LearningSessionUpdate) -> None:
        from app.crud.learning_session import learning_session as learning_session_crud

        if is_guest_session(session_id):
            logger.debug(f"Skipping progress write for guest session {session_id}")
            return
        with self._db("update session") as db:
            db_session = learning_session_crud.get(db, id=session_id)
            if db_session is None:
                raise GatewayError(f"Session {session_id} no longer exists")
            learning_session_crud.update(db, db_obj=db_session, obj_in=changes)

    async def complete_session(
        self,
        session_id: str,
        *,
        score_percentage: float,
        time_spent_seconds: int,
        correct_answers: int,
        total_questions: int,
        user_id: Optional[int] = None,
    ) -> None:
        from app.services.learning_session import learning_session_service

        if is_guest_session(session_id):
            logger.debug(f"Skipping completion write for guest session {session_id}")
            return
        with self._db("complete session") as db:
            await learning_session_service.complete_session_with_goals(
                db,
                session_id,
                score_percentage=score_percentage,
                time_spent_seconds=time_spent_seconds,
                correct_answers=correct_answers,
                total_questions=total_questions,
                user_id=user_id,
            )
