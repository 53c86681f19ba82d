from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 54378
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "forexnepal"
    redis_url: str = "redis://localhost:6379/0"
    debug: bool = True

    # Upstream (Nepal Rastra Bank forex API)
    nrb_base_url: str = "https://www.nrb.org.np/api/forex/v1"
    upstream_timeout_seconds: float = 30.0
    upstream_rate_per_second: float = 2.0
    chunk_days: int = 90  # NRB serves at most 100 rows per page

    # Rate store
    store_timeout_seconds: float = 5.0
    store_max_span_days: int = 31  # longer spans skip the store and go upstream

    # Chart request limiter
    chart_short_range_max: int = 60
    chart_window_seconds: int = 3600
    chart_long_range_cooldown_seconds: int = 69
    chart_long_range_threshold_days: int = 365 * 3

    # API gatekeeper
    api_settings_cache_ttl_seconds: int = 300
    quota_window_seconds: int = 3600
    usage_log_retention_seconds: int = 7200
    gate_fail_open: bool = True

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"


settings = Settings()
