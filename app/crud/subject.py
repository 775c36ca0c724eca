from typing import Dict, List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.constants import QuestionStatusEnum
from app.crud.base import CRUDBase
from app.models.question import Question
from app.models.subject import Subject, Topic

class CRUDSubject(CRUDBase[Subject, Subject, Subject]):
    def get_by_slug(self, db: Session, *, slug: str) -> Optional[Subject]:
        return db.query(self.model).filter(self.model.slug == slug).first()

    def get_by_name(self, db: Session, *, name: str, exclude_id: Optional[int] = None) -> Optional[Subject]:
        query = db.query(self.model).filter(func.lower(self.model.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return query.first()

    def list_ordered(self, db: Session, *, is_active: Optional[bool] = None) -> List[Subject]:
        query = db.query(self.model)
        if is_active is not None:
            query = query.filter(self.model.is_active == is_active)
        return query.order_by(self.model.display_order.asc(), self.model.name.asc()).all()

    def next_display_order(self, db: Session) -> int:
        return (db.query(func.max(self.model.display_order)).scalar() or 0) + 1

    def topic_counts(self, db: Session) -> Dict[int, int]:
        rows = db.query(Topic.subject_id, func.count(Topic.id)).group_by(Topic.subject_id).all()
        return {subject_id: count for subject_id, count in rows}

    def question_counts(self, db: Session) -> Dict[int, int]:
        rows = db.query(Question.subject_id, func.count(Question.id)).group_by(Question.subject_id).all()
        return {subject_id: count for subject_id, count in rows}

class CRUDTopic(CRUDBase[Topic, Topic, Topic]):
    def get_by_ids(self, db: Session, *, topic_ids: List[int]) -> List[Topic]:
        if not topic_ids:
            return []
        return db.query(self.model).filter(self.model.id.in_(topic_ids)).all()

    def get_for_subject(self, db: Session, *, subject_id: int, active_only: bool = False) -> List[Topic]:
        query = db.query(self.model).filter(self.model.subject_id == subject_id)
        if active_only:
            query = query.filter(self.model.is_active.is_(True))
        return query.order_by(self.model.order_index.asc(), self.model.id.asc()).all()

    def get_by_name_in_subject(
        self, db: Session, *, subject_id: int, name: str, exclude_id: Optional[int] = None
    ) -> Optional[Topic]:
        query = (
            db.query(self.model)
            .filter(self.model.subject_id == subject_id)
            .filter(func.lower(self.model.name) == name.lower())
        )
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return query.first()

    def next_order_index(self, db: Session, *, subject_id: int) -> int:
        current = db.query(func.max(self.model.order_index)).filter(self.model.subject_id == subject_id).scalar()
        return 0 if current is None else current + 1

    def question_counts(self, db: Session, *, topic_ids: Sequence[int], published_only: bool = False) -> Dict[int, int]:
        if not topic_ids:
            return {}
        query = db.query(Question.topic_id, func.count(Question.id)).filter(Question.topic_id.in_(list(topic_ids)))
        if published_only:
            query = query.filter(Question.status == QuestionStatusEnum.PUBLISHED)
        return {topic_id: count for topic_id, count in query.group_by(Question.topic_id).all()}

subject = CRUDSubject(Subject)
topic = CRUDTopic(Topic)
