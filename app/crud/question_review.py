from typing import Any, Dict, Optional
from sqlalchemy.orm import Session, selectinload

from app.core.constants import ReviewStatusEnum
from app.crud.base import CRUDBase, paginate
from app.models.question_review import QuestionReview
from app.schemas.question_review import QuestionReviewCreate, QuestionReviewUpdate

class CRUDQuestionReview(CRUDBase[QuestionReview, QuestionReviewCreate, QuestionReviewUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(QuestionReview).options(
            selectinload(QuestionReview.question),
            selectinload(QuestionReview.reviewer),
            selectinload(QuestionReview.approver),
        )

    def get_latest_for_question(self, db: Session, *, question_id: int) -> Optional[QuestionReview]:
        return (
            self._query_with_relationships(db)
            .filter(QuestionReview.question_id == question_id)
            .order_by(QuestionReview.created_at.desc(), QuestionReview.id.desc())
            .first()
        )

    def get_pending_for_question(self, db: Session, *, question_id: int) -> Optional[QuestionReview]:
        return (
            db.query(QuestionReview)
            .filter(QuestionReview.question_id == question_id)
            .filter(QuestionReview.status == ReviewStatusEnum.PENDING)
            .order_by(QuestionReview.created_at.desc(), QuestionReview.id.desc())
            .first()
        )

    def get_history(
        self, db: Session, *, question_id: Optional[int] = None, status: Optional[ReviewStatusEnum] = None,
        page: int = 1, size: int = 20
    ) -> Dict[str, Any]:
        query = self._query_with_relationships(db)
        if question_id is not None:
            query = query.filter(QuestionReview.question_id == question_id)
        if status is not None:
            query = query.filter(QuestionReview.status == status)
        query = query.order_by(QuestionReview.created_at.desc(), QuestionReview.id.desc())
        return paginate(query, page=page, size=size)

question_review = CRUDQuestionReview(QuestionReview)
