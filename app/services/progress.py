import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.constants import XP_PER_CORRECT_ANSWER
from app.core.database import SessionLocal
from app.crud.user import user as crud_user
from app.models.user import User

logger = logging.getLogger(__name__)


class ProgressService:

    def _next_streak(self, user: User, today: date) -> int:
        last = user.last_active_date
        if last == today:
            return user.current_streak or 1
        if last == today - timedelta(days=1):
            return (user.current_streak or 0) + 1
        return 1

    def apply_session_completion(
        self,
        db: Session,
        *,
        user_id: int,
        questions_answered: int,
        correct_answers: int,
        time_spent_seconds: int,
        today: Optional[date] = None,
    ) -> Optional[User]:
        """Add a finished session to the learner's totals, XP and daily streak."""
        user = crud_user.get(db, id=user_id)
        if not user:
            logger.warning(f"Cannot update goals: user {user_id} not found")
            return None

        today = today or date.today()
        streak = self._next_streak(user, today)
        update_data = {
            "total_questions_answered": (user.total_questions_answered or 0) + questions_answered,
            "total_correct_answers": (user.total_correct_answers or 0) + correct_answers,
            "total_study_minutes": (user.total_study_minutes or 0) + round(time_spent_seconds / 60),
            "xp_points": (user.xp_points or 0) + correct_answers * XP_PER_CORRECT_ANSWER,
            "current_streak": streak,
            "longest_streak": max(user.longest_streak or 0, streak),
            "last_active_date": today,
        }
        user = crud_user.update(db, db_obj=user, obj_in=update_data)
        logger.info(f"User {user_id} goals updated: streak={streak}, xp={user.xp_points}")
        return user

    def handle_session_completed(self, data: Dict[str, Any]) -> None:
        db = SessionLocal()
        try:
            self.apply_session_completion(
                db,
                user_id=data["user_id"],
                questions_answered=data.get("questions_answered") or 0,
                correct_answers=data.get("correct_answers") or 0,
                time_spent_seconds=data.get("time_spent_seconds") or 0,
            )
        except Exception as e:
            db.rollback()
            logger.error(f"Goal update failed for session {data.get('session_id')}: {e}")
        finally:
            db.close()


progress_service = ProgressService()
