import json
import asyncio
import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, NamedTuple, Optional

import redis.asyncio as redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Key/value store for guest session snapshots and guest answer counters.

    ``ttl=None`` uses ``CACHE_TTL``; ``ttl=0`` keeps the key until deleted.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def incr(self, key: str, amount: int = 1) -> int:
        """Atomically add ``amount`` to an integer key and return the new value."""
        pass


def _resolve_ttl(ttl: Optional[int]) -> int:
    return settings.CACHE_TTL if ttl is None else ttl


class _Entry(NamedTuple):
    value: Any
    expires_at: Optional[float]

    def live(self, now: float) -> bool:
        return self.expires_at is None or now < self.expires_at


class MemoryCacheBackend(CacheBackend):
    """Single-process backend; counters are only shared within one worker."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def _lookup(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is not None and not entry.live(time.monotonic()):
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._lookup(key)
            return entry.value if entry else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        seconds = _resolve_ttl(ttl)
        async with self._lock:
            self._entries[key] = _Entry(value, time.monotonic() + seconds if seconds else None)
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def incr(self, key: str, amount: int = 1) -> int:
        async with self._lock:
            entry = self._lookup(key)
            total = int(entry.value if entry else 0) + amount
            self._entries[key] = _Entry(total, entry.expires_at if entry else None)
            return total


class RedisCacheBackend(CacheBackend):
    """Shared backend so every worker sees the same guest counters."""

    def __init__(self, redis_url: str):
        self.redis = redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        seconds = _resolve_ttl(ttl)
        try:
            await self.redis.set(key, json.dumps(value, default=str), ex=seconds or None)
        except redis.RedisError as e:
            logger.error(f"Cache write failed for {key}: {e}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            return await self.redis.delete(key) > 0
        except redis.RedisError as e:
            logger.error(f"Cache delete failed for {key}: {e}")
            return False

    async def incr(self, key: str, amount: int = 1) -> int:
        # Errors propagate to the guest gate.
        return int(await self.redis.incrby(key, amount))


def create_cache_backend() -> CacheBackend:
    if settings.CACHE_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise ValueError("CACHE_BACKEND=redis requires REDIS_URL")
        logger.info("Using Redis cache backend")
        return RedisCacheBackend(settings.REDIS_URL)
    logger.info("Using in-memory cache backend")
    return MemoryCacheBackend()


cache = create_cache_backend()
