"""historical_prices table

Revision ID: 0001_historical_prices
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_historical_prices"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "historical_prices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_historical_prices")),
        sa.UniqueConstraint("token", "network", "timestamp", name="uq_historical_prices_token_network_timestamp"),
    )
    op.create_index("ix_historical_prices_lookup", "historical_prices", ["token", "network", "timestamp"])


def downgrade() -> None:
    op.drop_index("ix_historical_prices_lookup", table_name="historical_prices")
    op.drop_table("historical_prices")
