from forexnepal.db.repos.api_access_repo import ApiAccessRepo
from forexnepal.db.repos.rate_repo import RateRepo
from forexnepal.db.repos.usage_log_repo import UsageLogRepo

__all__ = ["ApiAccessRepo", "RateRepo", "UsageLogRepo"]
