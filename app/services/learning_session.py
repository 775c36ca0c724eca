import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.core.constants import GUEST_SESSION_PREFIX, RoleEnum, SessionStatusEnum
from app.crud.learning_session import learning_session as crud_learning_session
from app.crud.question import question as crud_question
from app.crud.session_answer import session_answer as crud_session_answer
from app.crud.subject import subject as crud_subject, topic as crud_topic
from app.models.user import User
from app.schemas.learning_session import (
    LearningSession,
    LearningSessionComplete,
    LearningSessionCreate,
    LearningSessionUpdate,
    ResumeCheck,
)
from app.schemas.session_answer import SessionAnswer, SessionAnswerCreate
from app.utils.events import SESSION_COMPLETED, event_bus

logger = logging.getLogger(__name__)


class LearningSessionService:

    def _is_guest(self, session_id: str) -> bool:
        return session_id.startswith(GUEST_SESSION_PREFIX)

    def require_owner(self, session: LearningSession, current_user: Optional[User]):
        if session.user_id is None:
            return
        if current_user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required for this session.")
        if session.user_id != current_user.id and current_user.role not in (RoleEnum.ADMIN, RoleEnum.SUPER_ADMIN):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only access your own sessions.")

    def _require_stored_session(self, session_id: str):
        if self._is_guest(session_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Guest sessions are not stored on the server."
            )

    def select_question_ids(
        self, db: Session, *, topic_ids: List[int], total_questions: int, user_id: Optional[int] = None
    ) -> List[int]:
        """Pick published questions spread evenly over the topics, preferring unseen ones.

        The returned order is final: sessions keep it for their whole life.
        """
        if not topic_ids or total_questions <= 0:
            return []

        attempted = set()
        if user_id is not None:
            attempted = set(crud_session_answer.get_answered_question_ids_for_user(db, user_id=user_id))

        pools: Dict[int, List[int]] = {}
        for topic_id in topic_ids:
            fresh = crud_question.get_published_ids_for_topic(db, topic_id=topic_id, exclude_ids=list(attempted))
            seen = [
                qid for qid in crud_question.get_published_ids_for_topic(db, topic_id=topic_id)
                if qid in attempted
            ]
            pools[topic_id] = fresh + seen

        base, remainder = divmod(total_questions, len(topic_ids))
        picks: Dict[int, List[int]] = {}
        for position, topic_id in enumerate(topic_ids):
            quota = base + (1 if position < remainder else 0)
            picks[topic_id] = pools[topic_id][:quota]
            pools[topic_id] = pools[topic_id][quota:]

        # Top up from topics with spare questions when another topic runs short
        shortfall = total_questions - sum(len(p) for p in picks.values())
        for topic_id in topic_ids:
            if shortfall <= 0:
                break
            extra = pools[topic_id][:shortfall]
            picks[topic_id].extend(extra)
            shortfall -= len(extra)

        ordered: List[int] = []
        longest = max(len(p) for p in picks.values())
        for i in range(longest):
            for topic_id in topic_ids:
                if i < len(picks[topic_id]):
                    ordered.append(picks[topic_id][i])

        logger.info(f"Selected {len(ordered)} of {total_questions} requested questions for topics {topic_ids}")
        return ordered

    async def create_session(
        self, db: Session, *, session_in: LearningSessionCreate, current_user: Optional[User] = None
    ) -> LearningSession:
        subject = crud_subject.get(db, id=session_in.subject_id)
        if not subject:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found.")

        topics = crud_topic.get_by_ids(db, topic_ids=session_in.topic_ids)
        if len(topics) != len(set(session_in.topic_ids)) or any(t.subject_id != subject.id for t in topics):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="All topics must exist and belong to the selected subject."
            )

        question_ids = self.select_question_ids(
            db,
            topic_ids=session_in.topic_ids,
            total_questions=session_in.total_questions,
            user_id=current_user.id if current_user else None,
        )
        if not question_ids:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No published questions are available for the selected topics."
            )

        session_data = session_in.model_dump()
        session_data.update(
            question_ids=question_ids,
            total_questions=len(question_ids),
            status=SessionStatusEnum.IN_PROGRESS,
        )

        if current_user is None:
            guest = LearningSession(
                id=f"{GUEST_SESSION_PREFIX}{uuid.uuid4().hex}",
                started_at=datetime.now(timezone.utc),
                **session_data,
            )
            await self.save_guest_session(guest)
            logger.info(f"Guest session {guest.id} created with {len(question_ids)} questions")
            return guest

        db_session = crud_learning_session.create(
            db, obj_in={**session_data, "id": str(uuid.uuid4()), "user_id": current_user.id}
        )
        logger.info(f"Session {db_session.id} created for user {current_user.id} with {len(question_ids)} questions")
        return LearningSession.model_validate(db_session)

    async def load_guest_session(self, session_id: str) -> Optional[LearningSession]:
        data = await cache.get(CACHE_KEYS["guest_session"].format(session_id))
        if not data:
            return None
        return LearningSession.model_validate(data)

    async def save_guest_session(self, session: LearningSession) -> None:
        await cache.set(
            CACHE_KEYS["guest_session"].format(session.id),
            session.model_dump(mode="json"),
            ttl=CACHE_TTL["guest_session"],
        )

    def find_session(self, db: Session, session_id: str) -> Optional[LearningSession]:
        db_session = crud_learning_session.get(db, id=session_id)
        return LearningSession.model_validate(db_session) if db_session else None

    async def get_session(self, db: Session, session_id: str, current_user: Optional[User] = None) -> LearningSession:
        if self._is_guest(session_id):
            session = await self.load_guest_session(session_id)
        else:
            session = self.find_session(db, session_id)
        if session is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found.")
        self.require_owner(session, current_user)
        return session

    async def get_session_answers(
        self, db: Session, session_id: str, current_user: Optional[User] = None
    ) -> List[SessionAnswer]:
        await self.get_session(db, session_id, current_user)
        if self._is_guest(session_id):
            return []
        answers = crud_session_answer.get_all_by_session(db, session_id=session_id)
        return [SessionAnswer.model_validate(a) for a in answers]

    async def update_session(
        self, db: Session, session_id: str, session_in: LearningSessionUpdate, current_user: Optional[User] = None
    ) -> LearningSession:
        self._require_stored_session(session_id)
        session = await self.get_session(db, session_id, current_user)

        if session.status == SessionStatusEnum.COMPLETED:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Completed sessions cannot be modified.")
        if session_in.status == SessionStatusEnum.COMPLETED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Use the complete endpoint to finish a session."
            )
        if session_in.last_question_index is not None and session_in.last_question_index >= session.total_questions:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="last_question_index must be smaller than total_questions."
            )

        db_session = crud_learning_session.get(db, id=session_id)
        updated = crud_learning_session.update(db, db_obj=db_session, obj_in=session_in)
        return LearningSession.model_validate(updated)

    async def record_answer(
        self, db: Session, session_id: str, answer_in: SessionAnswerCreate, current_user: Optional[User] = None
    ) -> SessionAnswer:
        self._require_stored_session(session_id)
        session = await self.get_session(db, session_id, current_user)
        if session.status == SessionStatusEnum.COMPLETED:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot answer a completed session.")
        if session.question_ids and answer_in.question_id not in session.question_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Question does not belong to this session."
            )

        answer = crud_session_answer.upsert(db, session_id=session_id, obj_in=answer_in)
        return SessionAnswer.model_validate(answer)

    async def complete_session_with_goals(
        self,
        db: Session,
        session_id: str,
        *,
        score_percentage: float,
        time_spent_seconds: Optional[int] = None,
        correct_answers: Optional[int] = None,
        total_questions: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> LearningSession:
        """Mark the session completed and publish the goal/streak event. Safe to call twice."""
        db_session = crud_learning_session.get(db, id=session_id)
        if not db_session:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found.")
        if db_session.status == SessionStatusEnum.COMPLETED:
            logger.info(f"Session {session_id} already completed; skipping")
            return LearningSession.model_validate(db_session)

        answers = crud_session_answer.get_all_by_session(db, session_id=session_id)
        update_data = {
            "status": SessionStatusEnum.COMPLETED,
            "completed_at": datetime.now(timezone.utc),
            "score_percentage": score_percentage,
            "questions_answered": max(db_session.questions_answered or 0, len(answers)),
        }
        if time_spent_seconds is not None:
            update_data["time_spent_seconds"] = time_spent_seconds
        if correct_answers is not None:
            update_data["correct_answers"] = correct_answers
        if total_questions:
            update_data["total_questions"] = total_questions
        db_session = crud_learning_session.update(db, db_obj=db_session, obj_in=update_data)

        owner_id = db_session.user_id or user_id
        if owner_id is not None:
            await event_bus.publish(SESSION_COMPLETED, {
                "session_id": session_id,
                "user_id": owner_id,
                "questions_answered": db_session.questions_answered,
                "correct_answers": db_session.correct_answers,
                "time_spent_seconds": db_session.time_spent_seconds,
            })

        logger.info(f"Session {session_id} completed with score {score_percentage:.2f}")
        return LearningSession.model_validate(db_session)

    async def complete_session(
        self, db: Session, session_id: str, completion_in: LearningSessionComplete, current_user: Optional[User] = None
    ) -> LearningSession:
        self._require_stored_session(session_id)
        await self.get_session(db, session_id, current_user)
        return await self.complete_session_with_goals(
            db,
            session_id,
            score_percentage=completion_in.score_percentage,
            time_spent_seconds=completion_in.time_spent_seconds,
            correct_answers=completion_in.correct_answers,
            total_questions=completion_in.total_questions,
            user_id=current_user.id if current_user else None,
        )

    async def resume_check(self, db: Session, session_id: str, current_user: Optional[User] = None) -> ResumeCheck:
        if self._is_guest(session_id):
            session = await self.load_guest_session(session_id)
        else:
            session = self.find_session(db, session_id)
        if session is None:
            return ResumeCheck(can_resume=False, has_answers=False, question_count=0, reason="Session not found")
        self.require_owner(session, current_user)

        answers = [] if self._is_guest(session_id) else crud_session_answer.get_all_by_session(db, session_id=session_id)
        question_count = len(session.question_ids or []) or len({a.question_id for a in answers})
        if session.status == SessionStatusEnum.COMPLETED:
            return ResumeCheck(
                can_resume=False, has_answers=bool(answers), question_count=question_count,
                reason="Session is already completed"
            )
        if not question_count:
            return ResumeCheck(
                can_resume=False, has_answers=False, question_count=0, reason="Session has no questions"
            )
        return ResumeCheck(can_resume=True, has_answers=bool(answers), question_count=question_count)


learning_session_service = LearningSessionService()
