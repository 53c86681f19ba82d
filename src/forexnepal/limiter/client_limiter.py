"""ClientRequestLimiter: throttles expensive chart requests per session.

Two independent limits over a sliding window:

* every request is refused once ``short_range_max`` short-range requests were made
  inside the window;
* a long-range request (span >= ``long_range_threshold_days``) additionally needs
  ``long_range_cooldown_seconds`` since the previous long-range request.
"""

import logging
import math
import time
from typing import Callable

from forexnepal.domain.models.limits import ClientRequestRecord, LimitDecision, RemainingRequests
from forexnepal.limiter.store import LimiterStateStore

logger = logging.getLogger(__name__)


class ClientRequestLimiter:
    def __init__(
        self,
        store: LimiterStateStore,
        session_key: str,
        *,
        short_range_max: int = 60,
        window_seconds: int = 3600,
        long_range_cooldown_seconds: int = 69,
        long_range_threshold_days: int = 365 * 3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._session_key = session_key
        self._short_range_max = short_range_max
        self._window = window_seconds
        self._cooldown = long_range_cooldown_seconds
        self._threshold_days = long_range_threshold_days
        self._clock = clock

    def is_long_range(self, span_days: int) -> bool:
        return span_days >= self._threshold_days

    async def _live_records(self, now: float) -> list[ClientRequestRecord]:
        records = await self._store.load(self._session_key)
        return [r for r in records if now - r.timestamp < self._window]

    async def can_request(self, span_days: int) -> LimitDecision:
        now = self._clock()
        records = await self._live_records(now)

        if self.is_long_range(span_days):
            long_records = [r for r in records if r.is_long_range]
            if long_records:
                elapsed = now - max(r.timestamp for r in long_records)
                if elapsed < self._cooldown:
                    wait = math.ceil(self._cooldown - elapsed)
                    return LimitDecision(
                        allowed=False,
                        reason=f"Please wait {wait} seconds before requesting another 3Y+ chart",
                        cooldown_seconds=wait,
                    )

        short_records = [r for r in records if not r.is_long_range]
        if len(short_records) >= self._short_range_max:
            oldest = min(r.timestamp for r in short_records)
            wait = math.ceil(self._window - (now - oldest))
            logger.info("Chart limit reached for session %s", self._session_key)
            return LimitDecision(
                allowed=False,
                reason=f"Chart limit reached ({self._short_range_max}/hour). Reset in {wait} seconds",
                cooldown_seconds=wait,
            )

        return LimitDecision(allowed=True)

    async def record_request(self, span_days: int) -> None:
        now = self._clock()
        records = await self._live_records(now)
        records.append(
            ClientRequestRecord(timestamp=now, span_days=span_days, is_long_range=self.is_long_range(span_days))
        )
        await self._store.save(self._session_key, records, ttl_seconds=self._window)

    async def remaining_requests(self) -> RemainingRequests:
        now = self._clock()
        records = await self._live_records(now)
        short_count = sum(1 for r in records if not r.is_long_range)
        long_times = [r.timestamp for r in records if r.is_long_range]
        cooldown = 0
        if long_times:
            cooldown = max(0, math.ceil(self._cooldown - (now - max(long_times))))
        return RemainingRequests(
            short_range=max(0, self._short_range_max - short_count),
            long_range_cooldown_seconds=cooldown,
        )
