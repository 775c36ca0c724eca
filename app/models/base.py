# Import every model so Base.metadata is complete for create_all and Alembic
from app.core.database import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.subject import Subject, Topic  # noqa: F401
from app.models.question import Question  # noqa: F401
from app.models.learning_session import LearningSession  # noqa: F401
from app.models.session_answer import SessionAnswer  # noqa: F401
from app.models.question_review import QuestionReview  # noqa: F401
from app.models.admin_audit_log import AdminAuditLog  # noqa: F401
