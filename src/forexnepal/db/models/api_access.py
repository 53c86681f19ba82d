"""API access control tables: per-endpoint rules and the usage ledger."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forexnepal.db.session import Base, TimestampMixin


class ApiAccessSetting(TimestampMixin, Base):
    """Access rule for one (normalised) endpoint, e.g. ``/api/posts/:slug``."""

    __tablename__ = "api_access_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    endpoint: Mapped[str] = mapped_column(String(200), unique=True)
    access_level: Mapped[str] = mapped_column(String(20), default="public")  # public / restricted / disabled
    allowed_rules: Mapped[str] = mapped_column(Text, default="[]")  # JSON array of IPs / hostnames / *.domain
    quota_per_hour: Mapped[int] = mapped_column(Integer, default=-1)  # -1 = unlimited


class ApiUsageLog(Base):
    """Append-only ledger row written per gated request. Pruned, never updated."""

    __tablename__ = "api_usage_logs"
    __table_args__ = (
        Index("ix_api_usage_logs_identity_endpoint_time", "identifier", "endpoint", "request_time"),
        Index("ix_api_usage_logs_request_time", "request_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    identifier: Mapped[str] = mapped_column(String(255))  # caller IP or hostname
    endpoint: Mapped[str] = mapped_column(String(200))
    request_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    status_code: Mapped[int] = mapped_column(Integer, default=200)
