"""Static currency reference data for the NPR rate board."""

from dataclasses import dataclass
from decimal import Decimal

from forexnepal.exceptions import UnknownCurrency


@dataclass(frozen=True)
class CurrencyMeta:
    code: str
    display_name: str
    unit: int  # rates are published per ``unit`` of the currency
    is_fixed_peg: bool = False
    peg_buy: Decimal | None = None  # per ``unit``, only for fixed pegs
    peg_sell: Decimal | None = None


CURRENCIES: dict[str, CurrencyMeta] = {
    "INR": CurrencyMeta(
        "INR", "Indian Rupee", 100, is_fixed_peg=True, peg_buy=Decimal("160"), peg_sell=Decimal("160.15")
    ),
    "USD": CurrencyMeta("USD", "U.S. Dollar", 1),
    "EUR": CurrencyMeta("EUR", "European Euro", 1),
    "GBP": CurrencyMeta("GBP", "UK Pound Sterling", 1),
    "CHF": CurrencyMeta("CHF", "Swiss Franc", 1),
    "AUD": CurrencyMeta("AUD", "Australian Dollar", 1),
    "CAD": CurrencyMeta("CAD", "Canadian Dollar", 1),
    "SGD": CurrencyMeta("SGD", "Singapore Dollar", 1),
    "JPY": CurrencyMeta("JPY", "Japanese Yen", 10),
    "CNY": CurrencyMeta("CNY", "Chinese Yuan", 1),
    "SAR": CurrencyMeta("SAR", "Saudi Arabian Riyal", 1),
    "QAR": CurrencyMeta("QAR", "Qatari Riyal", 1),
    "THB": CurrencyMeta("THB", "Thai Baht", 1),
    "AED": CurrencyMeta("AED", "U.A.E Dirham", 1),
    "MYR": CurrencyMeta("MYR", "Malaysian Ringgit", 1),
    "KRW": CurrencyMeta("KRW", "South Korean Won", 100),
    "SEK": CurrencyMeta("SEK", "Swedish Kroner", 1),
    "DKK": CurrencyMeta("DKK", "Danish Kroner", 1),
    "HKD": CurrencyMeta("HKD", "Hong Kong Dollar", 1),
    "KWD": CurrencyMeta("KWD", "Kuwaiti Dinar", 1),
    "BHD": CurrencyMeta("BHD", "Bahraini Dinar", 1),
    "OMR": CurrencyMeta("OMR", "Omani Rial", 1),
}


def get_currency(code: str) -> CurrencyMeta:
    meta = CURRENCIES.get(code.strip().upper())
    if meta is None:
        raise UnknownCurrency(code)
    return meta


def per_unit(value: Decimal | None, unit: int) -> Decimal | None:
    """Normalise a published rate to a single unit of currency."""
    if value is None:
        return None
    return value / Decimal(unit)
