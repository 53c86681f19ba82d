"""Daily published forex rates, one row per (date, currency)."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from forexnepal.db.session import Base, TimestampMixin


class ForexRate(TimestampMixin, Base):
    """NPR buy/sell rate as published, i.e. per ``unit`` of the currency (not normalised)."""

    __tablename__ = "forex_rates"
    __table_args__ = (UniqueConstraint("date", "currency_code", name="uq_forex_rates_date_currency"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    currency_code: Mapped[str] = mapped_column(String(3), index=True)
    buy: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    sell: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
