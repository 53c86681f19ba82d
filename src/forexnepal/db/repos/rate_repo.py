from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forexnepal.db.models.forex_rate import ForexRate
from forexnepal.domain.enums import Sampling
from forexnepal.utils.dates import keep_for_sampling


class RateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_range(
        self,
        currency: str,
        start: date,
        end: date,
        sampling: Sampling = Sampling.DAILY,
    ) -> list[ForexRate]:
        """Rows for ``currency`` in ``[start, end]`` ordered by date, skipping days with neither buy nor sell."""
        result = await self._session.execute(
            select(ForexRate)
            .where(
                ForexRate.currency_code == currency.upper(),
                ForexRate.date >= start,
                ForexRate.date <= end,
            )
            .order_by(ForexRate.date.asc())
        )
        return [
            row
            for row in result.scalars().all()
            if (row.buy is not None or row.sell is not None) and keep_for_sampling(row.date, sampling, start, end)
        ]

    async def get_for_date(self, day: date) -> list[ForexRate]:
        result = await self._session.execute(
            select(ForexRate).where(ForexRate.date == day).order_by(ForexRate.currency_code.asc())
        )
        return list(result.scalars().all())

    async def upsert_many(
        self, rows: Iterable[tuple[date, str, Optional[Decimal], Optional[Decimal]]]
    ) -> int:
        """Insert or overwrite ``(date, currency, buy, sell)`` rows. Returns number of rows written."""
        count = 0
        for day, currency, buy, sell in rows:
            code = currency.upper()
            result = await self._session.execute(
                select(ForexRate).where(ForexRate.date == day, ForexRate.currency_code == code)
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                self._session.add(ForexRate(date=day, currency_code=code, buy=buy, sell=sell))
            else:
                existing.buy = buy
                existing.sell = sell
            count += 1
        await self._session.flush()
        return count
