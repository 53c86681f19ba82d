"""Rates API: historical series for charts and the published board for one day."""

import datetime as dt
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from forexnepal.api.deps import enforce_access, get_db, get_limiter, get_rate_service
from forexnepal.api.schemas.rates import (
    CurrencyRateResponse,
    DayRatesResponse,
    HistoricalRatesResponse,
    RatePointResponse,
)
from forexnepal.db.repos.rate_repo import RateRepo
from forexnepal.domain.enums import Sampling
from forexnepal.domain.models.currency import CURRENCIES
from forexnepal.infra.rates.lookup import get_historical_rates
from forexnepal.infra.rates.service import HistoricalRateService
from forexnepal.limiter.client_limiter import ClientRequestLimiter

router = APIRouter(prefix="/api", tags=["rates"], dependencies=[Depends(enforce_access)])

DbDep = Annotated[AsyncSession, Depends(get_db)]
ServiceDep = Annotated[HistoricalRateService, Depends(get_rate_service)]
LimiterDep = Annotated[ClientRequestLimiter, Depends(get_limiter)]


@router.get("/historical-rates", response_model=HistoricalRatesResponse)
async def historical_rates(
    service: ServiceDep,
    limiter: LimiterDep,
    currency: str = Query(..., description="ISO 4217 code, e.g. USD"),
    start: dt.date = Query(..., alias="from"),
    end: dt.date = Query(..., alias="to"),
    sampling: Optional[Sampling] = Query(None, description="daily (default), weekly, monthly or yearly"),
) -> HistoricalRatesResponse:
    """Daily buy/sell series per one unit of currency, gaps as nulls."""
    result = await get_historical_rates(service, currency, start, end, limiter=limiter, sampling=sampling)
    return HistoricalRatesResponse(
        currency=currency.strip().upper(),
        start=start,
        end=end,
        provenance=result.provenance.value,
        sampling_used=result.sampling_used,
        points=[RatePointResponse(date=p.date, buy=p.buy, sell=p.sell) for p in result.points],
    )


@router.get("/rates/date/{day}", response_model=DayRatesResponse)
async def rates_for_date(day: dt.date, db: DbDep):
    """All currencies stored for ``day``, as published."""
    rows = await RateRepo(db).get_for_date(day)
    if not rows:
        return JSONResponse(status_code=404, content={"date": day.isoformat(), "rates": []})

    rates = []
    for row in rows:
        meta = CURRENCIES.get(row.currency_code)
        rates.append(
            CurrencyRateResponse(
                currency=row.currency_code,
                name=meta.display_name if meta else row.currency_code,
                unit=meta.unit if meta else 1,
                buy=row.buy,
                sell=row.sell,
            )
        )
    return DayRatesResponse(date=day, rates=rates)
