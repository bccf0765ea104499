"""Create position state and candle tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCHEMA = "range_keeper"


def upgrade() -> None:
    # Schema is created by env.py before migrations run.
    op.create_table(
        "position_states",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("pool_id", sa.Text, nullable=False),
        sa.Column("strategy_address", sa.Text, nullable=False),
        sa.Column("price_lower", sa.Numeric, nullable=False),
        sa.Column("price_upper", sa.Numeric, nullable=False),
        sa.Column("last_rebalance_price", sa.Numeric, nullable=False),
        sa.Column("last_rebalance_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("current_volatility", sa.Numeric, nullable=True),
        sa.Column("current_hurst", sa.Numeric, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("pool_id"),
        sa.CheckConstraint("price_lower < price_upper", name="ck_position_band_ordered"),
        schema=SCHEMA,
    )

    op.create_table(
        "candles",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("pool_id", sa.Text, nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("open", sa.Numeric, nullable=False),
        sa.Column("high", sa.Numeric, nullable=False),
        sa.Column("low", sa.Numeric, nullable=False),
        sa.Column("close", sa.Numeric, nullable=False),
        sa.Column("volume", sa.Numeric, nullable=False),
        sa.UniqueConstraint("pool_id", "ts"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_candles_pool_ts", "candles", ["pool_id", "ts"], schema=SCHEMA,
    )


def downgrade() -> None:
    op.drop_index("ix_candles_pool_ts", table_name="candles", schema=SCHEMA)
    op.drop_table("candles", schema=SCHEMA)
    op.drop_table("position_states", schema=SCHEMA)
