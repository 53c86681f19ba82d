from dependency_injector import containers, providers
from redis import asyncio as aioredis

from forexnepal.config import Settings
from forexnepal.db.session import build_engine, build_session_factory
from forexnepal.gate.gatekeeper import AccessGatekeeper
from forexnepal.gate.ledger import UsageLedger
from forexnepal.gate.settings_cache import AccessRuleCache
from forexnepal.infra.http.rate_limited_client import RateLimitedClient
from forexnepal.infra.rates.nrb import NRBClient
from forexnepal.limiter.store import RedisLimiterStore


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["forexnepal.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    redis = providers.Singleton(
        aioredis.from_url,
        settings.provided.redis_url,
        decode_responses=True,
    )

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.upstream_rate_per_second,
        timeout=settings.provided.upstream_timeout_seconds,
    )

    nrb_client = providers.Singleton(
        NRBClient,
        http_client=http_client,
        base_url=settings.provided.nrb_base_url,
        timeout=settings.provided.upstream_timeout_seconds,
    )

    rule_cache = providers.Singleton(
        AccessRuleCache,
        redis=redis,
        session_factory=session_factory,
        ttl_seconds=settings.provided.api_settings_cache_ttl_seconds,
    )

    usage_ledger = providers.Singleton(UsageLedger, session_factory=session_factory)

    gatekeeper = providers.Singleton(
        AccessGatekeeper,
        rules=rule_cache,
        ledger=usage_ledger,
        quota_window_seconds=settings.provided.quota_window_seconds,
        fail_open=settings.provided.gate_fail_open,
    )

    limiter_store = providers.Singleton(RedisLimiterStore, redis=redis)
