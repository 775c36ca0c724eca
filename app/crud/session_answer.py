from typing import List, Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.session_answer import SessionAnswer
from app.schemas.session_answer import SessionAnswerCreate

class CRUDSessionAnswer(CRUDBase[SessionAnswer, SessionAnswerCreate, SessionAnswerCreate]):

    def get_by_session_and_question(self, db: Session, *, session_id: str, question_id: int) -> Optional[SessionAnswer]:
        return (
            db.query(self.model)
            .filter(self.model.session_id == session_id)
            .filter(self.model.question_id == question_id)
            .first()
        )

    def get_all_by_session(self, db: Session, *, session_id: str) -> List[SessionAnswer]:
        return (
            db.query(self.model)
            .filter(self.model.session_id == session_id)
            .order_by(self.model.answered_at, self.model.id)
            .all()
        )

    def get_answered_question_ids_for_user(self, db: Session, *, user_id: int) -> List[int]:
        from app.models.learning_session import LearningSession

        rows = (
            db.query(self.model.question_id)
            .join(LearningSession, LearningSession.id == self.model.session_id)
            .filter(LearningSession.user_id == user_id)
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    def upsert(self, db: Session, *, session_id: str, obj_in: SessionAnswerCreate) -> SessionAnswer:
        """Insert or update the single answer row for (session, question).

        first_attempt_correct is written only when the stored row has none yet.
        """
        data = obj_in.model_dump()
        existing = self.get_by_session_and_question(db, session_id=session_id, question_id=obj_in.question_id)
        if existing is None:
            return self.create(db, obj_in={**data, "session_id": session_id})

        if existing.first_attempt_correct is not None:
            data.pop("first_attempt_correct")
        if data["attempt_count"] < existing.attempt_count:
            data["attempt_count"] = existing.attempt_count
        return self.update(db, db_obj=existing, obj_in=data)

session_answer = CRUDSessionAnswer(SessionAnswer)
