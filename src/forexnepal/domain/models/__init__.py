from forexnepal.domain.models.currency import CURRENCIES, CurrencyMeta, get_currency
from forexnepal.domain.models.limits import ClientRequestRecord, LimitDecision, RemainingRequests
from forexnepal.domain.models.rates import DailyRates, FetchRequest, FetchResult, ProgressEvent, RatePoint

__all__ = [
    "CURRENCIES",
    "ClientRequestRecord",
    "CurrencyMeta",
    "DailyRates",
    "FetchRequest",
    "FetchResult",
    "LimitDecision",
    "ProgressEvent",
    "RatePoint",
    "RemainingRequests",
    "get_currency",
]
