import logging
import re
import time
import uuid
from typing import Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.constants import GUEST_SESSION_PREFIX

logger = logging.getLogger(__name__)

SESSION_PATH = re.compile(r"^/(?:sessions|practice)/([^/]+)")


def session_from_path(path: str) -> Optional[str]:
    match = SESSION_PATH.match(path)
    if not match or match.group(1) == "by-ids":
        return None
    return match.group(1)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id and logs one line per request, keyed by session when there is one."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        started = time.perf_counter()
        method = request.method
        path = request.url.path
        session_id = session_from_path(path)
        context = {
            "request_id": request_id,
            "method": method,
            "path": path,
            "session_id": session_id,
            "device_id": request.headers.get("x-device-id"),
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"[{request_id}] {method} {path} failed after {(time.perf_counter() - started) * 1000:.1f}ms: {exc}",
                extra=context,
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        tag = ""
        if session_id:
            tag = " [guest]" if session_id.startswith(GUEST_SESSION_PREFIX) else f" [session {session_id}]"

        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.INFO,
            f"[{request_id}] {method} {path} - {response.status_code}{tag} ({duration_ms}ms)",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )

        response.headers["X-Request-ID"] = request_id
        return response
