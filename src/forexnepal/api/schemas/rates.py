import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class RatePointResponse(BaseModel):
    date: dt.date
    buy: Optional[Decimal] = None
    sell: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class HistoricalRatesResponse(BaseModel):
    currency: str
    start: dt.date
    end: dt.date
    provenance: str
    sampling_used: str
    points: list[RatePointResponse]


class CurrencyRateResponse(BaseModel):
    currency: str
    name: str
    unit: int
    buy: Optional[Decimal] = None  # as published, per ``unit``
    sell: Optional[Decimal] = None


class DayRatesResponse(BaseModel):
    date: dt.date
    rates: list[CurrencyRateResponse]
