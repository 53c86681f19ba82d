"""HistoricalRateService: fixed peg, then rate store, then chunked NRB fetch."""

import asyncio
import logging
from datetime import date
from typing import Iterable, Protocol

from forexnepal.db.models.forex_rate import ForexRate
from forexnepal.domain.enums import Provenance, Sampling
from forexnepal.domain.models.currency import CurrencyMeta, get_currency, per_unit
from forexnepal.domain.models.rates import DailyRates, FetchRequest, FetchResult, ProgressEvent, RatePoint
from forexnepal.exceptions import ChunkFetchError, FetchCancelled, StoreTimeout, UpstreamError
from forexnepal.infra.rates.progress import ProgressChannel, ProgressSink, publish
from forexnepal.utils.dates import gap_fill, iter_days, keep_for_sampling, merge_points, split_ranges, validate_range

logger = logging.getLogger(__name__)

FIXED_SAMPLING = "daily (fixed)"


class RateStore(Protocol):
    async def get_range(
        self, currency: str, start: date, end: date, sampling: Sampling = Sampling.DAILY
    ) -> list[ForexRate]: ...


class RateUpstream(Protocol):
    async def fetch_range(self, start: date, end: date) -> list[DailyRates]: ...


class HistoricalRateService:
    """Historical rate orchestrator.

    Short spans try the rate store first under a hard timeout; anything the store
    cannot answer (timeout, error, no rows) and every longer span is fetched from
    the upstream in fixed-size chunks, one chunk at a time. Store failures are never
    surfaced; an upstream chunk failure aborts the whole fetch.
    """

    def __init__(
        self,
        store: RateStore | None,
        upstream: RateUpstream | None,
        *,
        chunk_days: int = 90,
        store_timeout: float = 5.0,
        store_max_span_days: int = 31,
    ) -> None:
        if chunk_days <= 0:
            raise ValueError("chunk_days must be positive")
        self._store = store
        self._upstream = upstream
        self._chunk_days = chunk_days
        self._store_timeout = store_timeout
        self._store_max_span_days = store_max_span_days

    async def fetch(
        self,
        request: FetchRequest,
        progress: ProgressSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> FetchResult:
        try:
            return await self._fetch(request, progress, cancel)
        finally:
            if isinstance(progress, ProgressChannel):
                progress.close()

    async def _fetch(
        self,
        request: FetchRequest,
        progress: ProgressSink | None,
        cancel: asyncio.Event | None,
    ) -> FetchResult:
        meta = get_currency(request.currency)
        validate_range(request.start, request.end)

        # 1. Fixed peg: analytic series, no store, no network, no gaps
        if meta.is_fixed_peg:
            return FetchResult(
                points=self._synthesize(meta, request.start, request.end),
                provenance=Provenance.SYNTHETIC,
                sampling_used=FIXED_SAMPLING,
            )

        # 2. Short spans: rate store with timeout
        sampling = request.sampling_hint or Sampling.DAILY
        if request.span_days <= self._store_max_span_days:
            points = await self._from_store(meta, request.start, request.end, sampling)
            if points:
                return FetchResult(
                    points=self._finish(points, meta, request, sampling),
                    provenance=Provenance.CACHE,
                    sampling_used=sampling.value,
                )

        # 3-5. Chunked upstream fetch, merge, then gap-fill or sample
        points = await self._from_upstream(meta, request.start, request.end, progress, cancel)
        return FetchResult(
            points=self._finish(points, meta, request, sampling),
            provenance=Provenance.UPSTREAM,
            sampling_used=sampling.value,
        )

    @staticmethod
    def _finish(
        points: list[RatePoint], meta: CurrencyMeta, request: FetchRequest, sampling: Sampling
    ) -> list[RatePoint]:
        if sampling == Sampling.DAILY:
            return gap_fill(points, meta.code, request.start, request.end)
        # A sampled series has intentional gaps
        return [p for p in points if keep_for_sampling(p.date, sampling, request.start, request.end)]

    @staticmethod
    def _synthesize(meta: CurrencyMeta, start: date, end: date) -> list[RatePoint]:
        buy = per_unit(meta.peg_buy, meta.unit)
        sell = per_unit(meta.peg_sell, meta.unit)
        return [RatePoint(date=day, currency=meta.code, buy=buy, sell=sell) for day in iter_days(start, end)]

    async def _query_store(self, currency: str, start: date, end: date, sampling: Sampling) -> list[ForexRate]:
        try:
            return await asyncio.wait_for(
                self._store.get_range(currency, start, end, sampling), timeout=self._store_timeout
            )
        except asyncio.TimeoutError as exc:
            raise StoreTimeout(
                f"Rate store timed out after {self._store_timeout:.1f}s for {currency} {start}..{end}"
            ) from exc

    async def _from_store(self, meta: CurrencyMeta, start: date, end: date, sampling: Sampling) -> list[RatePoint]:
        if self._store is None:
            return []
        try:
            rows = await self._query_store(meta.code, start, end, sampling)
        except StoreTimeout as exc:
            logger.warning("%s, falling back to upstream", exc)
            return []
        except Exception:
            logger.warning("Rate store lookup failed for %s %s..%s, falling back to upstream",
                           meta.code, start, end, exc_info=True)
            return []

        points = [
            RatePoint(date=row.date, currency=meta.code, buy=per_unit(row.buy, meta.unit),
                      sell=per_unit(row.sell, meta.unit))
            for row in rows
            if start <= row.date <= end and (row.buy is not None or row.sell is not None)
        ]
        if not points:
            logger.info("Rate store has no rows for %s %s..%s", meta.code, start, end)
        return merge_points(points)

    async def _from_upstream(
        self,
        meta: CurrencyMeta,
        start: date,
        end: date,
        progress: ProgressSink | None,
        cancel: asyncio.Event | None,
    ) -> list[RatePoint]:
        if self._upstream is None:
            raise RuntimeError("No upstream configured for historical rates")

        windows = split_ranges(start, end, self._chunk_days)
        total = len(windows)
        collected: list[RatePoint] = []

        for index, window in enumerate(windows):
            if cancel is not None and cancel.is_set():
                raise FetchCancelled(f"Cancelled before chunk {index + 1}/{total}")

            try:
                days = await self._upstream.fetch_range(window.start, window.end)
            except UpstreamError as exc:
                logger.error("Upstream chunk %d/%d (%s..%s) for %s failed: %s",
                             index + 1, total, window.start, window.end, meta.code, exc)
                raise ChunkFetchError(index, total, window.start, window.end, exc) from exc

            if cancel is not None and cancel.is_set():
                raise FetchCancelled(f"Cancelled during chunk {index + 1}/{total}")

            collected.extend(self._extract(meta, days, start, end))
            await publish(
                progress,
                ProgressEvent(
                    percent_complete=round((index + 1) / total * 100, 2),
                    current_chunk=index + 1,
                    total_chunks=total,
                ),
            )

        logger.info("Fetched %d %s points from upstream in %d chunk(s)", len(collected), meta.code, total)
        return merge_points(collected)

    @staticmethod
    def _extract(meta: CurrencyMeta, days: Iterable[DailyRates], start: date, end: date) -> list[RatePoint]:
        points: list[RatePoint] = []
        for day in days:
            if not start <= day.date <= end:
                continue
            buy, sell = day.rates.get(meta.code, (None, None))
            if buy is None and sell is None:
                continue
            points.append(
                RatePoint(date=day.date, currency=meta.code, buy=per_unit(buy, meta.unit),
                          sell=per_unit(sell, meta.unit))
            )
        return points
