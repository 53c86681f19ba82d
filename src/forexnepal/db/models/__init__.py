from forexnepal.db.models.api_access import ApiAccessSetting, ApiUsageLog
from forexnepal.db.models.forex_rate import ForexRate

__all__ = [
    "ApiAccessSetting",
    "ApiUsageLog",
    "ForexRate",
]
