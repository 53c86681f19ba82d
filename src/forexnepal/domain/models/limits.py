"""Chart request limiter records and decisions."""

from typing import Optional

from pydantic import BaseModel


class ClientRequestRecord(BaseModel):
    timestamp: float  # epoch seconds
    span_days: int
    is_long_range: bool


class LimitDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    cooldown_seconds: int = 0


class RemainingRequests(BaseModel):
    short_range: int
    long_range_cooldown_seconds: int  # 0 when a long-range chart may be requested now
