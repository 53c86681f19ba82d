from typing import AsyncGenerator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forexnepal.config import Settings
from forexnepal.container import Container
from forexnepal.db.repos.rate_repo import RateRepo
from forexnepal.gate.gatekeeper import AccessDenial, AccessGatekeeper, RequestMeta
from forexnepal.infra.rates.nrb import NRBClient
from forexnepal.infra.rates.service import HistoricalRateService
from forexnepal.limiter.client_limiter import ClientRequestLimiter
from forexnepal.limiter.store import LimiterStateStore


class AccessDenied(Exception):
    """Carries a gate denial out of a dependency; rendered by the app as ``{"error": ...}``."""

    def __init__(self, denial: AccessDenial) -> None:
        super().__init__(denial.error)
        self.denial = denial


@inject
async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(Provide[Container.session_factory]),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@inject
def get_settings(settings: Settings = Depends(Provide[Container.settings])) -> Settings:
    return settings


@inject
def get_gatekeeper(gatekeeper: AccessGatekeeper = Depends(Provide[Container.gatekeeper])) -> AccessGatekeeper:
    return gatekeeper


@inject
def get_nrb_client(client: NRBClient = Depends(Provide[Container.nrb_client])) -> NRBClient:
    return client


@inject
def get_limiter_store(store: LimiterStateStore = Depends(Provide[Container.limiter_store])) -> LimiterStateStore:
    return store


def request_meta(request: Request) -> RequestMeta:
    client_host = request.client.host if request.client else None
    return RequestMeta.from_headers(request.headers, client_host)


async def enforce_access(
    request: Request,
    gatekeeper: AccessGatekeeper = Depends(get_gatekeeper),
) -> None:
    """Router-level dependency: every public endpoint passes the access gate first."""
    denial = await gatekeeper.check_access(request.url.path, request_meta(request))
    if denial is not None:
        raise AccessDenied(denial)


def get_rate_service(
    db: AsyncSession = Depends(get_db),
    nrb_client: NRBClient = Depends(get_nrb_client),
    settings: Settings = Depends(get_settings),
) -> HistoricalRateService:
    return HistoricalRateService(
        RateRepo(db),
        nrb_client,
        chunk_days=settings.chunk_days,
        store_timeout=settings.store_timeout_seconds,
        store_max_span_days=settings.store_max_span_days,
    )


def get_limiter(
    request: Request,
    store: LimiterStateStore = Depends(get_limiter_store),
    settings: Settings = Depends(get_settings),
) -> ClientRequestLimiter:
    """Chart limiter for the calling session (``X-Session-Id`` header, else caller IP)."""
    meta = request_meta(request)
    session_key = request.headers.get("x-session-id") or meta.ip or "anonymous"
    return ClientRequestLimiter(
        store,
        session_key,
        short_range_max=settings.chart_short_range_max,
        window_seconds=settings.chart_window_seconds,
        long_range_cooldown_seconds=settings.chart_long_range_cooldown_seconds,
        long_range_threshold_days=settings.chart_long_range_threshold_days,
    )
