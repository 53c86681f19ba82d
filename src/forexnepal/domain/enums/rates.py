from enum import Enum


class Provenance(str, Enum):
    """Where the points of a FetchResult came from."""

    CACHE = "cache"
    UPSTREAM = "upstream"
    SYNTHETIC = "synthetic"


class Sampling(str, Enum):
    """Row sampling applied by the rate store on range queries."""

    DAILY = "daily"
    WEEKLY = "weekly"  # Thursdays
    MONTHLY = "monthly"  # 1st and 15th
    YEARLY = "yearly"  # day-of-year 1, 180, 365
