"""Throttled entry point for chart data: limiter first, then the orchestrator."""

import asyncio
import logging
from datetime import date

from forexnepal.domain.enums import Sampling
from forexnepal.domain.models.currency import get_currency
from forexnepal.domain.models.rates import FetchRequest, FetchResult
from forexnepal.exceptions import RateLimitExceeded
from forexnepal.infra.rates.progress import ProgressSink
from forexnepal.infra.rates.service import HistoricalRateService
from forexnepal.limiter.client_limiter import ClientRequestLimiter
from forexnepal.utils.dates import parse_date, span_days

logger = logging.getLogger(__name__)


async def get_historical_rates(
    service: HistoricalRateService,
    currency: str,
    start: str | date,
    end: str | date,
    progress: ProgressSink | None = None,
    *,
    limiter: ClientRequestLimiter | None = None,
    sampling: Sampling | None = None,
    cancel: asyncio.Event | None = None,
) -> FetchResult:
    """Fetch a historical series for a chart.

    Raises ``InvalidDateRange``/``UnknownCurrency`` for bad input, ``RateLimitExceeded``
    when the caller's limiter refuses, ``ChunkFetchError`` when the upstream fails.
    The request is recorded against the limiter before any fetch is issued. Fixed-peg
    currencies cost nothing and are not throttled.
    """
    meta = get_currency(currency)
    start_date = parse_date(start)
    end_date = parse_date(end)
    days = span_days(start_date, end_date)

    if limiter is not None and not meta.is_fixed_peg:
        decision = await limiter.can_request(days)
        if not decision.allowed:
            logger.info("Chart request for %s (%d days) throttled: %s", meta.code, days, decision.reason)
            raise RateLimitExceeded(decision.reason or "Rate limited", decision.cooldown_seconds)
        await limiter.record_request(days)

    request = FetchRequest(currency=meta.code, start=start_date, end=end_date, sampling_hint=sampling)
    return await service.fetch(request, progress=progress, cancel=cancel)
