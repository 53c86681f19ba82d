"""Register every public API endpoint with a default access rule.

Usage:
    PYTHONPATH=src python scripts/seed_access_rules.py

Idempotent: existing rules are left untouched. New endpoints are created as
public with no quota. The Redis rule cache is invalidated afterwards so the
gate picks the rows up immediately.
"""

import asyncio
import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("seed_access_rules")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

DEFAULT_ENDPOINTS = [
    "/api/settings",
    "/api/latest-rates",
    "/api/historical-rates",
    "/api/posts",
    "/api/posts/:slug",
    "/api/rates/date/:date",
    "/api/image/latest-rates",
    "/api/archive/list",
    "/api/archive/detail/:date",
]


async def main() -> None:
    from redis import asyncio as aioredis

    from forexnepal.config import settings
    from forexnepal.db.repos.api_access_repo import ApiAccessRepo
    from forexnepal.db.session import build_engine, build_session_factory, session_scope
    from forexnepal.gate.settings_cache import AccessRuleCache

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)
    redis = aioredis.from_url(settings.redis_url, decode_responses=True)

    try:
        async with session_scope(session_factory) as session:
            repo = ApiAccessRepo(session)
            created = 0
            for endpoint in DEFAULT_ENDPOINTS:
                if await repo.create_if_missing(endpoint):
                    logger.info("Registered %s as public", endpoint)
                    created += 1

        await AccessRuleCache(redis, session_factory).invalidate()
        logger.info("Done: %d new, %d already configured", created, len(DEFAULT_ENDPOINTS) - created)
    finally:
        await redis.aclose()
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
