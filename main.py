from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
import app.models.base  # noqa: F401
from app.core.exceptions import SabiPrepError
from app.core.logging import configure_logging
from app.core.scheduler import start_scheduler, stop_scheduler
from app.endpoints import (
    sessions, questions, practice, subjects,
    admin_questions, admin_reviews, admin_audit, admin_users, admin_subjects, admin_topics,
)
from app.engine.registry import engine_registry
from app.middleware.exceptions import (
    domain_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.services.progress import progress_service
from app.utils.events import SESSION_COMPLETED, event_bus

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(SabiPrepError, domain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
app.include_router(questions.router, prefix="/questions", tags=["Questions"])
app.include_router(practice.router, prefix="/practice", tags=["Practice"])
app.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])

app.include_router(admin_questions.router, prefix="/admin/questions", tags=["Admin Questions"])
app.include_router(admin_reviews.router, prefix="/admin/reviews", tags=["Admin Reviews"])
app.include_router(admin_audit.router, prefix="/admin/audit", tags=["Admin Audit"])
app.include_router(admin_users.router, prefix="/admin/users", tags=["Admin Users"])
app.include_router(admin_subjects.router, prefix="/admin/subjects", tags=["Admin Subjects"])
app.include_router(admin_topics.router, prefix="/admin/topics", tags=["Admin Topics"])

event_bus.subscribe(SESSION_COMPLETED, progress_service.handle_session_completed)

@app.on_event("startup")
async def startup_event():
    start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    await engine_registry.close_all()
    stop_scheduler()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
