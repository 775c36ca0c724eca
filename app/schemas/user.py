from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date

from app.core.constants import RoleEnum
from app.schemas.admin_audit_log import AdminAuditLog
from app.schemas.learning_session import LearningSessionSummary

class User(BaseModel):
    id: int
    full_name: Optional[str] = None
    email: str
    role: RoleEnum
    is_active: bool
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    total_study_minutes: int = 0
    xp_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)

class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[RoleEnum] = None
    is_active: Optional[bool] = None

class UserStats(BaseModel):
    total_sessions: int = 0
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    average_accuracy: int = 0
    current_streak: int = 0
    total_study_minutes: int = 0

class UserDetail(BaseModel):
    user: User
    stats: UserStats
    recent_sessions: List[LearningSessionSummary] = []
    recent_activity: List[AdminAuditLog] = []
    role_history: List[AdminAuditLog] = []
