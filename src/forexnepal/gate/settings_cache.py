"""Short-TTL Redis cache of all access rules, loaded from the database on miss."""

import json
import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forexnepal.db.repos.api_access_repo import ApiAccessRepo
from forexnepal.gate.rules import AccessRule, rule_from_dict, rule_from_setting, rule_to_dict

logger = logging.getLogger(__name__)

CACHE_KEY = "api_access_settings_v1"


class AccessRuleCache:
    """All rules are cached together under one key; admin writes call ``invalidate()``.

    A rule edited in the database may be served stale for up to ``ttl_seconds``.
    """

    def __init__(
        self,
        redis: Redis,
        session_factory: async_sessionmaker[AsyncSession],
        ttl_seconds: int = 300,
    ) -> None:
        self._redis = redis
        self._session_factory = session_factory
        self._ttl = ttl_seconds

    async def get_rules(self) -> dict[str, AccessRule]:
        cached = await self._read_cache()
        if cached is not None:
            return cached

        rules = await self._load_from_db()
        if rules is None:
            return {}
        # An empty rule set is cached too
        await self._write_cache(rules)
        return rules

    async def get_rule(self, endpoint: str) -> AccessRule | None:
        return (await self.get_rules()).get(endpoint)

    async def invalidate(self) -> None:
        try:
            await self._redis.delete(CACHE_KEY)
        except RedisError:
            logger.warning("Failed to invalidate access rule cache", exc_info=True)

    async def _read_cache(self) -> dict[str, AccessRule] | None:
        try:
            raw = await self._redis.get(CACHE_KEY)
        except RedisError:
            logger.warning("Access rule cache unavailable, reading rules from database", exc_info=True)
            return None
        if not raw:
            return None
        try:
            rules = {}
            for item in json.loads(raw):
                rule = rule_from_dict(item)
                if rule is not None:
                    rules[rule.endpoint] = rule
            return rules
        except (KeyError, TypeError, ValueError):
            logger.warning("Corrupt access rule cache entry, reloading")
            return None

    async def _write_cache(self, rules: dict[str, AccessRule]) -> None:
        payload = json.dumps([rule_to_dict(r) for r in rules.values()])
        try:
            await self._redis.set(CACHE_KEY, payload, ex=self._ttl)
        except RedisError:
            logger.warning("Failed to populate access rule cache", exc_info=True)

    async def _load_from_db(self) -> dict[str, AccessRule] | None:
        """Rules keyed by endpoint, or ``None`` when the database could not be read."""
        try:
            async with self._session_factory() as session:
                settings = await ApiAccessRepo(session).get_all()
        except SQLAlchemyError:
            logger.error("Failed to load access rules from database", exc_info=True)
            return None

        rules: dict[str, AccessRule] = {}
        for setting in settings:
            rule = rule_from_setting(setting)
            if rule is not None:
                rules[rule.endpoint] = rule
        logger.info("Loaded %d access rules from database", len(rules))
        return rules
