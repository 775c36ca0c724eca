from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from app.core.constants import QuestionStatusEnum
from app.crud.base import CRUDBase, paginate
from app.models.question import Question
from app.schemas.question import QuestionCreate, QuestionUpdate

class CRUDQuestion(CRUDBase[Question, QuestionCreate, QuestionUpdate]):
    def get_by_ids(self, db: Session, *, question_ids: Sequence[int], batch_size: int = 100) -> List[Question]:
        """Fetch questions in chunks; missing ids are simply absent from the result."""
        results: List[Question] = []
        unique_ids = list(dict.fromkeys(question_ids))
        for start in range(0, len(unique_ids), batch_size):
            chunk = unique_ids[start:start + batch_size]
            results.extend(db.query(self.model).filter(self.model.id.in_(chunk)).all())
        return results

    def get_published_ids_for_topic(
        self, db: Session, *, topic_id: int, exclude_ids: Sequence[int] = (), limit: Optional[int] = None
    ) -> List[int]:
        query = (
            db.query(self.model.id)
            .filter(self.model.topic_id == topic_id)
            .filter(self.model.status == QuestionStatusEnum.PUBLISHED)
        )
        if exclude_ids:
            query = query.filter(self.model.id.notin_(list(exclude_ids)))
        query = query.order_by(func.random())
        if limit is not None:
            query = query.limit(limit)
        return [row[0] for row in query.all()]

    def count_published_for_topics(self, db: Session, *, topic_ids: Sequence[int]) -> int:
        return (
            db.query(self.model)
            .filter(self.model.topic_id.in_(list(topic_ids)))
            .filter(self.model.status == QuestionStatusEnum.PUBLISHED)
            .count()
        )

    def get_filtered_paginated(self, db: Session, *, filters: Dict[str, Any], page: int = 1, size: int = 20) -> Dict[str, Any]:
        query = db.query(self.model)
        for field in ("subject_id", "topic_id", "status", "difficulty", "exam_type", "exam_year", "passage_id"):
            value = filters.get(field)
            if value is not None:
                query = query.filter(getattr(self.model, field) == value)
        search = filters.get("search")
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(self.model.question_text.ilike(pattern), self.model.passage.ilike(pattern)))
        query = query.order_by(self.model.created_at.desc(), self.model.id.desc())
        return paginate(query, page=page, size=size)

    def bulk_update_status(self, db: Session, *, question_ids: Sequence[int], status: QuestionStatusEnum) -> int:
        affected = (
            db.query(self.model)
            .filter(self.model.id.in_(list(question_ids)))
            .update({self.model.status: status}, synchronize_session=False)
        )
        db.commit()
        return affected

    def bulk_delete(self, db: Session, *, question_ids: Sequence[int]) -> int:
        questions = db.query(self.model).filter(self.model.id.in_(list(question_ids))).all()
        for question in questions:
            db.delete(question)
        db.commit()
        return len(questions)

question = CRUDQuestion(Question)
