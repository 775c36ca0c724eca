import asyncio
import logging
from collections import OrderedDict
from typing import Callable, Optional

from app.core.config import settings
from app.engine.session_engine import SessionEngine

logger = logging.getLogger(__name__)


class EngineRegistry:
    """Live engines keyed by session id, least recently used evicted first."""

    def __init__(self, max_size: int = None):
        self.max_size = max_size or settings.ENGINE_REGISTRY_MAX_SIZE
        self._engines: "OrderedDict[str, SessionEngine]" = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._engines

    def peek(self, session_id: str) -> Optional[SessionEngine]:
        """Look up without counting as a use."""
        return self._engines.get(session_id)

    def get(self, session_id: str) -> Optional[SessionEngine]:
        engine = self._engines.get(session_id)
        if engine is not None:
            self._engines.move_to_end(session_id)
        return engine

    async def open(self, session_id: str, build: Callable[[], SessionEngine]) -> SessionEngine:
        """Return the live engine for a session, building and initializing it on first use."""
        async with self._lock:
            engine = self.get(session_id)
            if engine is not None:
                return engine

            engine = build()
            await engine.initialize()
            self._engines[session_id] = engine
            evicted = []
            while len(self._engines) > self.max_size:
                evicted.append(self._engines.popitem(last=False))

        for old_id, old_engine in evicted:
            logger.info(f"Evicting engine for session {old_id}")
            await old_engine.close()
        return engine

    async def discard(self, session_id: str) -> None:
        async with self._lock:
            engine = self._engines.pop(session_id, None)
        if engine is not None:
            await engine.close()

    async def close_all(self) -> None:
        async with self._lock:
            engines = list(self._engines.values())
            self._engines.clear()
        for engine in engines:
            try:
                await engine.close()
            except Exception as e:
                logger.error(f"Failed to close engine for session {engine.session_id}: {e}")
        logger.info(f"Closed {len(engines)} live session engines")


engine_registry = EngineRegistry()
