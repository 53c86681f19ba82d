"""Domain types for historical rate lookups."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from forexnepal.domain.enums.rates import Provenance, Sampling


class RatePoint(BaseModel):
    """Buy/sell rate for one currency on one day, per single unit of currency.

    ``buy``/``sell`` of ``None`` marks a day with no published data (gap).
    """

    model_config = {"frozen": True}

    date: dt.date
    currency: str
    buy: Optional[Decimal] = None
    sell: Optional[Decimal] = None

    @property
    def is_gap(self) -> bool:
        return self.buy is None and self.sell is None


class FetchRequest(BaseModel):
    currency: str
    start: dt.date
    end: dt.date
    sampling_hint: Optional[Sampling] = None

    @property
    def span_days(self) -> int:
        """Inclusive number of calendar days covered."""
        return (self.end - self.start).days + 1


class FetchResult(BaseModel):
    points: list[RatePoint]
    provenance: Provenance
    sampling_used: str  # "daily", "weekly", ... or "daily (fixed)"

    @property
    def has_data(self) -> bool:
        return any(not p.is_gap for p in self.points)


class ProgressEvent(BaseModel):
    percent_complete: float
    current_chunk: int  # 1-based
    total_chunks: int


class DailyRates(BaseModel):
    """One published day from the upstream API, all currencies."""

    date: dt.date
    rates: dict[str, tuple[Optional[Decimal], Optional[Decimal]]]  # ISO3 -> (buy, sell) as published
