from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base, StrEnum
from app.core.constants import QuestionStatusEnum, DifficultyEnum

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    passage_id = Column(Integer, nullable=True, index=True)  # shared reading passages
    passage = Column(Text, nullable=True)
    question_image_url = Column(String, nullable=True)

    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=True)
    option_d = Column(Text, nullable=True)
    option_e = Column(Text, nullable=True)
    correct_answer = Column(String(1), nullable=False)

    explanation = Column(Text, nullable=True)
    hint = Column(Text, nullable=True)  # legacy single hint
    hint1 = Column(Text, nullable=True)
    hint2 = Column(Text, nullable=True)
    hint3 = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)

    difficulty = Column(StrEnum(DifficultyEnum), nullable=True)
    exam_type = Column(String, nullable=True, index=True)
    exam_year = Column(Integer, nullable=True)
    status = Column(StrEnum(QuestionStatusEnum), nullable=False, default=QuestionStatusEnum.DRAFT, index=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    subject = relationship("Subject")
    topic = relationship("Topic")
    reviews = relationship("QuestionReview", back_populates="question", cascade="all, delete-orphan")

    def option(self, letter: str):
        return getattr(self, f"option_{letter.lower()}", None)
