"""rates_and_api_access_tables

Revision ID: a1f3c9d2e004
Revises:
Create Date: 2026-10-18 09:12:40.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1f3c9d2e004"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "forex_rates",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("buy", sa.Numeric(14, 4), nullable=True),
        sa.Column("sell", sa.Numeric(14, 4), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_forex_rates")),
        sa.UniqueConstraint("date", "currency_code", name="uq_forex_rates_date_currency"),
    )
    op.create_index(op.f("ix_forex_rates_date"), "forex_rates", ["date"])
    op.create_index(op.f("ix_forex_rates_currency_code"), "forex_rates", ["currency_code"])

    op.create_table(
        "api_access_settings",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("endpoint", sa.String(200), nullable=False),
        sa.Column("access_level", sa.String(20), server_default="public", nullable=False),
        sa.Column("allowed_rules", sa.Text(), server_default="[]", nullable=False),
        sa.Column("quota_per_hour", sa.Integer(), server_default="-1", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_api_access_settings")),
        sa.UniqueConstraint("endpoint", name=op.f("uq_api_access_settings_endpoint")),
    )

    op.create_table(
        "api_usage_logs",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("identifier", sa.String(255), nullable=False),
        sa.Column("endpoint", sa.String(200), nullable=False),
        sa.Column("request_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status_code", sa.Integer(), server_default="200", nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_api_usage_logs")),
    )
    op.create_index(
        "ix_api_usage_logs_identity_endpoint_time", "api_usage_logs", ["identifier", "endpoint", "request_time"]
    )
    op.create_index("ix_api_usage_logs_request_time", "api_usage_logs", ["request_time"])


def downgrade() -> None:
    op.drop_index("ix_api_usage_logs_request_time", table_name="api_usage_logs")
    op.drop_index("ix_api_usage_logs_identity_endpoint_time", table_name="api_usage_logs")
    op.drop_table("api_usage_logs")
    op.drop_table("api_access_settings")
    op.drop_index(op.f("ix_forex_rates_currency_code"), table_name="forex_rates")
    op.drop_index(op.f("ix_forex_rates_date"), table_name="forex_rates")
    op.drop_table("forex_rates")
