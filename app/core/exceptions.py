from typing import Any, Dict, Optional


class SabiPrepError(Exception):
    """Base for domain errors raised outside the HTTP layer."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class SessionNotFoundError(SabiPrepError):
    status_code = 404
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found", {"session_id": session_id})


class NoQuestionsAvailableError(SabiPrepError):
    status_code = 404
    code = "NO_QUESTIONS_AVAILABLE"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            "No questions available for this session. Start a new session.",
            {"session_id": session_id},
        )


class InvalidSessionStateError(SabiPrepError):
    status_code = 409
    code = "INVALID_SESSION_STATE"


class QuestionAlreadyAnsweredError(SabiPrepError):
    status_code = 409
    code = "QUESTION_ALREADY_ANSWERED"

    def __init__(self, question_id: int):
        self.question_id = question_id
        super().__init__(f"Question {question_id} has already been answered", {"question_id": question_id})


class NavigationError(SabiPrepError):
    status_code = 409
    code = "NAVIGATION_NOT_ALLOWED"


class GatewayError(SabiPrepError):
    """A data-access call failed."""

    status_code = 502
    code = "DATA_ACCESS_FAILED"


class InvalidAnswerError(SabiPrepError):
    status_code = 422
    code = "INVALID_ANSWER"
