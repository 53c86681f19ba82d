"""Persistence for per-session limiter state."""

import json
import logging
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from forexnepal.domain.models.limits import ClientRequestRecord

logger = logging.getLogger(__name__)

KEY_PREFIX = "chart_limiter:"


class LimiterStateStore(Protocol):
    async def load(self, session_key: str) -> list[ClientRequestRecord]: ...

    async def save(self, session_key: str, records: list[ClientRequestRecord], ttl_seconds: int) -> None: ...


class MemoryLimiterStore:
    """Process-local state for a single interactive session or tests."""

    def __init__(self) -> None:
        self._records: dict[str, list[ClientRequestRecord]] = {}

    async def load(self, session_key: str) -> list[ClientRequestRecord]:
        return list(self._records.get(session_key, []))

    async def save(self, session_key: str, records: list[ClientRequestRecord], ttl_seconds: int) -> None:
        self._records[session_key] = list(records)


class RedisLimiterStore:
    """Shares limiter state between API workers; one JSON list per session key."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def load(self, session_key: str) -> list[ClientRequestRecord]:
        try:
            raw = await self._redis.get(KEY_PREFIX + session_key)
        except RedisError:
            logger.warning("Limiter state unavailable for %s, starting empty", session_key, exc_info=True)
            return []
        if not raw:
            return []
        try:
            return [ClientRequestRecord.model_validate(item) for item in json.loads(raw)]
        except (ValueError, TypeError):
            logger.warning("Discarding corrupt limiter state for %s", session_key)
            return []

    async def save(self, session_key: str, records: list[ClientRequestRecord], ttl_seconds: int) -> None:
        payload = json.dumps([r.model_dump() for r in records])
        try:
            await self._redis.set(KEY_PREFIX + session_key, payload, ex=ttl_seconds)
        except RedisError:
            logger.warning("Could not persist limiter state for %s", session_key, exc_info=True)
