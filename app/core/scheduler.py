import logging
import os
from typing import Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def autosave_job_id(session_id: str) -> str:
    return f"autosave:{session_id}"


def schedule_autosave(session_id: str, tick: Callable[[], Awaitable[None]], interval_seconds: int = None) -> None:
    """Register the periodic progress push for one session, replacing any earlier job."""
    scheduler.add_job(
        tick,
        'interval',
        seconds=interval_seconds or settings.AUTOSAVE_INTERVAL_SECONDS,
        id=autosave_job_id(session_id),
        name=f'Autosave session {session_id}',
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    logger.debug(f"Autosave scheduled for session {session_id}")


def cancel_autosave(session_id: str) -> None:
    try:
        scheduler.remove_job(autosave_job_id(session_id))
        logger.debug(f"Autosave cancelled for session {session_id}")
    except JobLookupError:
        pass


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
