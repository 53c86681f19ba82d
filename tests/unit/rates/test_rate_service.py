"""Tests for HistoricalRateService with mocked store and upstream."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from forexnepal.db.models.forex_rate import ForexRate
from forexnepal.domain.enums import Provenance, Sampling
from forexnepal.domain.models.rates import DailyRates, FetchRequest
from forexnepal.exceptions import ChunkFetchError, FetchCancelled, InvalidDateRange, UnknownCurrency, UpstreamTimeout
from forexnepal.infra.rates.progress import ProgressChannel
from forexnepal.infra.rates.service import HistoricalRateService
from forexnepal.utils.dates import iter_days


def _store(rows=None, side_effect=None) -> MagicMock:
    store = MagicMock()
    store.get_range = AsyncMock(return_value=rows or [], side_effect=side_effect)
    return store


def _upstream(skip_weekday: int | None = None) -> MagicMock:
    """Upstream publishing USD (and KRW per 100) for every day, optionally skipping one weekday."""

    async def fetch_range(start: date, end: date) -> list[DailyRates]:
        return [
            DailyRates(
                date=day,
                rates={"USD": (Decimal("133.00"), Decimal("133.60")), "KRW": (Decimal("10.20"), Decimal("10.24"))},
            )
            for day in iter_days(start, end)
            if day.weekday() != skip_weekday
        ]

    upstream = MagicMock()
    upstream.fetch_range = AsyncMock(side_effect=fetch_range)
    return upstream


def _request(currency: str, start: date, end: date, **kwargs) -> FetchRequest:
    return FetchRequest(currency=currency, start=start, end=end, **kwargs)


class TestFixedPeg:
    async def test_inr_is_synthesized_without_io(self):
        store, upstream = _store(), _upstream()
        service = HistoricalRateService(store, upstream)

        result = await service.fetch(_request("INR", date(2020, 1, 1), date(2024, 12, 31)))

        assert result.provenance == Provenance.SYNTHETIC
        assert result.sampling_used == "daily (fixed)"
        assert len(result.points) == (date(2024, 12, 31) - date(2020, 1, 1)).days + 1
        assert all(p.buy == Decimal("1.6") and p.sell == Decimal("1.6015") for p in result.points)
        store.get_range.assert_not_called()
        upstream.fetch_range.assert_not_called()


class TestStorePath:
    async def test_store_hit_with_two_missing_days_is_gap_filled(self):
        rows = [
            ForexRate(date=day, currency_code="USD", buy=Decimal("133.50"), sell=Decimal("134.10"))
            for day in iter_days(date(2024, 1, 1), date(2024, 1, 10))
            if day not in (date(2024, 1, 4), date(2024, 1, 7))
        ]
        store, upstream = _store(rows), _upstream()
        service = HistoricalRateService(store, upstream)

        result = await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 1, 10)))

        assert result.provenance == Provenance.CACHE
        assert len(result.points) == 10
        assert [p.date for p in result.points] == list(iter_days(date(2024, 1, 1), date(2024, 1, 10)))
        gaps = [p.date for p in result.points if p.is_gap]
        assert gaps == [date(2024, 1, 4), date(2024, 1, 7)]
        upstream.fetch_range.assert_not_called()

    async def test_store_missing_first_and_last_day_covers_requested_range(self):
        rows = [
            ForexRate(date=day, currency_code="USD", buy=Decimal("133.50"), sell=Decimal("134.10"))
            for day in iter_days(date(2024, 1, 2), date(2024, 1, 9))
        ]
        service = HistoricalRateService(_store(rows), _upstream())

        result = await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 1, 10)))

        assert result.provenance == Provenance.CACHE
        assert [p.date for p in result.points] == list(iter_days(date(2024, 1, 1), date(2024, 1, 10)))
        assert [p.date for p in result.points if p.is_gap] == [date(2024, 1, 1), date(2024, 1, 10)]

    async def test_store_values_are_normalised_per_unit(self):
        rows = [ForexRate(date=date(2024, 1, 1), currency_code="JPY", buy=Decimal("9.40"), sell=Decimal("9.44"))]
        service = HistoricalRateService(_store(rows), _upstream())

        result = await service.fetch(_request("JPY", date(2024, 1, 1), date(2024, 1, 1)))

        assert result.points[0].buy == Decimal("0.94")

    async def test_sampled_store_result_keeps_its_gaps(self):
        rows = [
            ForexRate(date=date(2024, 1, 1), currency_code="USD", buy=Decimal("1"), sell=Decimal("2")),
            ForexRate(date=date(2024, 1, 4), currency_code="USD", buy=Decimal("1"), sell=Decimal("2")),
            ForexRate(date=date(2024, 1, 11), currency_code="USD", buy=Decimal("1"), sell=Decimal("2")),
        ]
        store = _store(rows)
        service = HistoricalRateService(store, _upstream())

        result = await service.fetch(
            _request("USD", date(2024, 1, 1), date(2024, 1, 11), sampling_hint=Sampling.WEEKLY)
        )

        assert result.sampling_used == "weekly"
        assert len(result.points) == 3
        assert store.get_range.call_args.args[3] == Sampling.WEEKLY

    async def test_store_timeout_falls_back_to_upstream(self):
        async def slow_get_range(*args, **kwargs):
            await asyncio.sleep(5)
            return []

        store = MagicMock()
        store.get_range = slow_get_range
        upstream = _upstream()
        service = HistoricalRateService(store, upstream, store_timeout=0.01)

        result = await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 1, 5)))

        assert result.provenance == Provenance.UPSTREAM
        assert len(result.points) == 5
        upstream.fetch_range.assert_awaited_once()

    async def test_store_error_falls_back_to_upstream(self):
        service = HistoricalRateService(_store(side_effect=RuntimeError("db down")), _upstream())

        result = await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 1, 5)))

        assert result.provenance == Provenance.UPSTREAM

    async def test_empty_store_falls_back_to_upstream(self):
        upstream = _upstream()
        service = HistoricalRateService(_store([]), upstream)

        result = await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 1, 5)))

        assert result.provenance == Provenance.UPSTREAM
        upstream.fetch_range.assert_awaited_once()

    async def test_long_span_skips_store(self):
        store = _store()
        service = HistoricalRateService(store, _upstream(), store_max_span_days=31)

        await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 3, 1)))

        store.get_range.assert_not_called()


class TestUpstreamPath:
    async def test_chunked_fetch_is_sorted_unique_and_in_range(self):
        upstream = _upstream(skip_weekday=5)  # no Saturday publications
        service = HistoricalRateService(None, upstream, chunk_days=90)
        start, end = date(2021, 3, 15), date(2024, 2, 10)

        result = await service.fetch(_request("USD", start, end))

        dates = [p.date for p in result.points]
        assert dates == sorted(set(dates))
        assert all(start <= d <= end for d in dates)
        assert all(p.is_gap for p in result.points if p.date.weekday() == 5)
        expected_chunks = -(-((end - start).days + 1) // 90)
        assert upstream.fetch_range.await_count == expected_chunks
        for call in upstream.fetch_range.call_args_list:
            chunk_start, chunk_end = call.args
            assert (chunk_end - chunk_start).days + 1 <= 90

    async def test_upstream_missing_first_and_last_day_covers_requested_range(self):
        start, end = date(2024, 1, 1), date(2024, 3, 31)

        async def fetch_range(chunk_start: date, chunk_end: date) -> list[DailyRates]:
            return [
                DailyRates(date=day, rates={"USD": (Decimal("133.00"), Decimal("133.60"))})
                for day in iter_days(chunk_start, chunk_end)
                if day not in (start, end)
            ]

        upstream = MagicMock()
        upstream.fetch_range = AsyncMock(side_effect=fetch_range)
        service = HistoricalRateService(None, upstream, chunk_days=30)

        result = await service.fetch(_request("USD", start, end))

        assert len(result.points) == 91
        assert result.points[0].date == start and result.points[0].is_gap
        assert result.points[-1].date == end and result.points[-1].is_gap
        assert sum(p.is_gap for p in result.points) == 2

    async def test_upstream_series_honours_sampling_hint(self):
        start, end = date(2024, 1, 1), date(2024, 3, 31)
        store = _store()
        service = HistoricalRateService(store, _upstream(), store_max_span_days=31)

        result = await service.fetch(_request("USD", start, end, sampling_hint=Sampling.WEEKLY))

        assert result.provenance == Provenance.UPSTREAM
        assert result.sampling_used == "weekly"
        dates = [p.date for p in result.points]
        assert dates[0] == start and dates[-1] == end
        assert all(d.weekday() == 3 for d in dates[1:-1])
        assert len(dates) == 15
        assert not any(p.is_gap for p in result.points)
        store.get_range.assert_not_called()

    async def test_upstream_values_are_normalised_per_unit(self):
        service = HistoricalRateService(None, _upstream())

        result = await service.fetch(_request("KRW", date(2024, 1, 1), date(2024, 1, 2)))

        assert result.points[0].buy == Decimal("0.102")

    async def test_chunk_failure_aborts_with_context(self):
        calls = 0

        async def fetch_range(start, end):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise UpstreamTimeout("NRB timed out")
            return []

        upstream = MagicMock()
        upstream.fetch_range = AsyncMock(side_effect=fetch_range)
        service = HistoricalRateService(None, upstream, chunk_days=90)

        with pytest.raises(ChunkFetchError) as exc_info:
            await service.fetch(_request("USD", date(2023, 1, 1), date(2023, 12, 31)))

        err = exc_info.value
        assert err.chunk_index == 1
        assert err.total_chunks == 5
        assert err.kind == "timeout"
        assert "Chunk 2/5" in str(err)
        assert upstream.fetch_range.await_count == 2

    async def test_progress_events_in_chunk_order(self):
        events = []
        service = HistoricalRateService(None, _upstream(), chunk_days=90)

        await service.fetch(_request("USD", date(2023, 1, 1), date(2023, 12, 31)), progress=events.append)

        assert [e.current_chunk for e in events] == [1, 2, 3, 4, 5]
        assert all(e.total_chunks == 5 for e in events)
        assert events[-1].percent_complete == 100

    async def test_progress_channel_is_closed_after_fetch(self):
        channel = ProgressChannel()
        service = HistoricalRateService(None, _upstream(), chunk_days=30)

        await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 3, 31)), progress=channel)

        received = [event async for event in channel]
        assert [e.current_chunk for e in received] == [1, 2, 3, 4]

    async def test_cancel_between_chunks(self):
        cancel = asyncio.Event()
        upstream = _upstream()

        def stop_after_first(event):
            cancel.set()

        service = HistoricalRateService(None, upstream, chunk_days=90)

        with pytest.raises(FetchCancelled):
            await service.fetch(
                _request("USD", date(2023, 1, 1), date(2023, 12, 31)), progress=stop_after_first, cancel=cancel
            )
        assert upstream.fetch_range.await_count == 1


class TestValidation:
    async def test_reversed_range(self):
        service = HistoricalRateService(_store(), _upstream())
        with pytest.raises(InvalidDateRange):
            await service.fetch(_request("USD", date(2024, 1, 10), date(2024, 1, 1)))

    async def test_unknown_currency(self):
        service = HistoricalRateService(_store(), _upstream())
        with pytest.raises(UnknownCurrency):
            await service.fetch(_request("XYZ", date(2024, 1, 1), date(2024, 1, 2)))

    def test_chunk_days_must_be_positive(self):
        with pytest.raises(ValueError):
            HistoricalRateService(None, None, chunk_days=0)

    async def test_single_day_range(self):
        service = HistoricalRateService(None, _upstream())
        result = await service.fetch(_request("USD", date(2024, 1, 1), date(2024, 1, 1)))
        assert len(result.points) == 1
        assert result.points[0].date == date(2024, 1, 1)
