from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime


def _required_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("name cannot be blank")
    return value


class SubjectCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, value):
        return _required_name(value)

class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    display_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, value):
        return _required_name(value)

class Subject(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    topic_count: int = 0
    question_count: int = 0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class TopicCreate(BaseModel):
    subject_id: int
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, value):
        return _required_name(value)

class TopicUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, value):
        return _required_name(value)

class Topic(BaseModel):
    id: int
    subject_id: int
    name: str
    description: Optional[str] = None
    order_index: int = 0
    is_active: bool = True
    question_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class SubjectDetail(BaseModel):
    subject: Subject
    topics: List[Topic]

class TopicOrder(BaseModel):
    id: int
    order_index: int = Field(..., ge=0)

class TopicReorder(BaseModel):
    subject_id: int
    items: List[TopicOrder] = Field(..., min_length=1)

class TopicReorderResult(BaseModel):
    subject_id: int
    updated: int
