from enum import Enum


GUEST_SESSION_PREFIX = "guest_"
OPTION_LETTERS = ("A", "B", "C", "D", "E")
XP_PER_CORRECT_ANSWER = 10

class RoleEnum(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

class QuestionStatusEnum(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

class DifficultyEnum(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class SessionModeEnum(str, Enum):
    PRACTICE = "practice"
    TEST = "test"
    TIMED = "timed"

class SessionStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

class ReviewStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"

class ReviewTypeEnum(str, Enum):
    SINGLE = "single"
    BATCH = "batch"

class AuditActionEnum(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    BULK_PUBLISH = "BULK_PUBLISH"
    BULK_ARCHIVE = "BULK_ARCHIVE"
    BULK_DELETE = "BULK_DELETE"
    IMPORT_START = "IMPORT_START"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_FAILED = "IMPORT_FAILED"
    ROLE_CHANGE = "ROLE_CHANGE"
    STATUS_CHANGE = "STATUS_CHANGE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

class AuditEntityTypeEnum(str, Enum):
    USER = "user"
    QUESTION = "question"
    SUBJECT = "subject"
    TOPIC = "topic"
    IMPORT = "import"

class BulkQuestionActionEnum(str, Enum):
    PUBLISH = "publish"
    ARCHIVE = "archive"
    DRAFT = "draft"
    DELETE = "delete"
