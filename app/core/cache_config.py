"""Cache key patterns and TTL settings"""

from app.core.config import settings

CACHE_TTL = {
    # Guest sessions live only as long as a browsing session would
    "guest_session": settings.GUEST_SESSION_TTL,
}

CACHE_KEYS = {
    "guest_session": "guest:session:{}",
    "guest_question_count": "guest:questions:{}",
}
