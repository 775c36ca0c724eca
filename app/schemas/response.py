from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

# Fallback codes for errors raised as bare HTTP statuses.
HTTP_ERROR_CODES: Dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}


def error_code_for(status_code: int) -> str:
    return HTTP_ERROR_CODES.get(status_code, f"HTTP_{status_code}")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class APIResponse(BaseModel, Generic[DataType]):
    """Envelope for every successful SabiPrep response."""
    message: str
    data: Optional[DataType] = None


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable code, e.g. SESSION_NOT_FOUND")
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
    timestamp: str = Field(default_factory=_utc_now)
    path: str
    request_id: Optional[str] = None
