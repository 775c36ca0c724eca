import logging
from dataclasses import dataclass

from app.core.cache import CacheBackend
from app.core.cache_config import CACHE_KEYS
from app.core.config import settings

logger = logging.getLogger(__name__)


class GuestQuestionCounter:
    """Answered-question counter for one guest device, stored in the shared cache.

    All tabs of a device share the key, so increments go through the backend's
    atomic ``incr``.
    """

    def __init__(self, backend: CacheBackend, device_id: str):
        self.backend = backend
        self.device_id = device_id
        self.key = CACHE_KEYS["guest_question_count"].format(device_id)

    async def current(self) -> int:
        value = await self.backend.get(self.key)
        return int(value) if value else 0

    async def increment(self) -> int:
        return await self.backend.incr(self.key)

    async def release(self) -> int:
        return await self.backend.incr(self.key, -1)

    async def reset(self) -> None:
        await self.backend.delete(self.key)


@dataclass
class GateDecision:
    allowed: bool
    used: int
    signup_required: bool


class GuestGate:
    def __init__(self, counter: GuestQuestionCounter, limit: int = None):
        self.counter = counter
        self.limit = settings.GUEST_QUESTION_LIMIT if limit is None else limit

    async def check(self) -> GateDecision:
        used = await self.counter.current()
        reached = used >= self.limit
        if reached:
            logger.info(f"Guest device {self.counter.device_id} hit the free question limit ({self.limit})")
        return GateDecision(allowed=not reached, used=used, signup_required=reached)

    async def has_reached_limit(self) -> bool:
        return await self.counter.current() >= self.limit

    async def increment(self) -> int:
        return await self.counter.increment()

    async def reserve(self) -> GateDecision:
        """Claim a slot for one answered question.

        The claim is a single atomic increment, so tabs racing on one device can
        never push the count past the limit: a claim that overshoots is handed
        back and refused. The answer that reaches the limit is kept but flags signup.
        """
        used = await self.counter.increment()
        if used > self.limit:
            used = await self.counter.release()
            logger.info(f"Guest device {self.counter.device_id} refused past the free question limit ({self.limit})")
            return GateDecision(allowed=False, used=min(used, self.limit), signup_required=True)
        return GateDecision(allowed=True, used=used, signup_required=used >= self.limit)

    async def reset(self) -> None:
        await self.counter.reset()
