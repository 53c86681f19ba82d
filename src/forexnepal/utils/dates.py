"""Calendar helpers: span, chunking, merging and gap-filling of daily series."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

from forexnepal.domain.enums import Sampling
from forexnepal.domain.models.rates import RatePoint
from forexnepal.exceptions import InvalidDateRange

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DateWindow:
    """Closed date range ``[start, end]``."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def parse_date(value: str | date) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidDateRange(start, end)


def span_days(start: date, end: date) -> int:
    """Inclusive number of calendar days between ``start`` and ``end``."""
    validate_range(start, end)
    return (end - start).days + 1


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += ONE_DAY


def split_ranges(start: date, end: date, window_days: int) -> list[DateWindow]:
    """Split ``[start, end]`` into consecutive windows of ``window_days``; the last one may be shorter."""
    if window_days <= 0:
        raise ValueError("window_days must be positive")
    validate_range(start, end)

    windows: list[DateWindow] = []
    delta = timedelta(days=window_days - 1)
    current = start
    while current <= end:
        chunk_end = min(current + delta, end)
        windows.append(DateWindow(start=current, end=chunk_end))
        current = chunk_end + ONE_DAY
    return windows


def merge_points(points: Iterable[RatePoint]) -> list[RatePoint]:
    """Dedupe by date (last write wins) and sort ascending."""
    by_date: dict[date, RatePoint] = {}
    for point in points:
        by_date[point.date] = point
    return [by_date[d] for d in sorted(by_date)]


def gap_fill(
    points: list[RatePoint],
    currency: str,
    start: date | None = None,
    end: date | None = None,
) -> list[RatePoint]:
    """Insert null points for every missing day in ``[start, end]``.

    The range defaults to the first and last point. An empty series stays empty so
    "no data" is not turned into a run of nulls. Input must be sorted and unique by
    date (see ``merge_points``). Idempotent.
    """
    if not points:
        return []

    present = {p.date: p for p in points}
    return [
        present.get(day) or RatePoint(date=day, currency=currency)
        for day in iter_days(start or points[0].date, end or points[-1].date)
    ]


def keep_for_sampling(day: date, sampling: Sampling, start: date, end: date) -> bool:
    """Whether ``day`` survives ``sampling``; the range endpoints always do."""
    if sampling == Sampling.DAILY or day in (start, end):
        return True
    if sampling == Sampling.WEEKLY:
        return day.weekday() == 3
    if sampling == Sampling.MONTHLY:
        return day.day in (1, 15)
    if sampling == Sampling.YEARLY:
        return day.timetuple().tm_yday in (1, 180, 365)
    return True
