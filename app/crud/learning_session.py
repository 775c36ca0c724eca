from typing import List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.constants import SessionStatusEnum
from app.crud.base import CRUDBase
from app.models.learning_session import LearningSession
from app.schemas.learning_session import LearningSessionCreate, LearningSessionUpdate

class CRUDLearningSession(CRUDBase[LearningSession, LearningSessionCreate, LearningSessionUpdate]):
    def get_for_user(self, db: Session, *, user_id: int, limit: int = 10) -> List[LearningSession]:
        """Incomplete sessions first, newest first within each group."""
        incomplete = (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .filter(self.model.status.in_([SessionStatusEnum.IN_PROGRESS, SessionStatusEnum.PAUSED]))
            .order_by(self.model.created_at.desc())
            .limit(limit)
            .all()
        )
        remaining = limit - len(incomplete)
        if remaining <= 0:
            return incomplete
        finished = (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .filter(self.model.status.notin_([SessionStatusEnum.IN_PROGRESS, SessionStatusEnum.PAUSED]))
            .order_by(self.model.created_at.desc())
            .limit(remaining)
            .all()
        )
        return incomplete + finished

    def completed_totals(self, db: Session, *, user_id: int) -> Tuple[int, int, int]:
        """(sessions, questions answered, correct answers) over the user's completed sessions."""
        row = (
            db.query(
                func.count(self.model.id),
                func.coalesce(func.sum(self.model.questions_answered), 0),
                func.coalesce(func.sum(self.model.correct_answers), 0),
            )
            .filter(self.model.user_id == user_id)
            .filter(self.model.status == SessionStatusEnum.COMPLETED)
            .one()
        )
        return int(row[0]), int(row[1]), int(row[2])

learning_session = CRUDLearningSession(LearningSession)
