"""SQLAlchemy ORM models for the range_keeper schema — position state."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from range_keeper.db.base import Base

SCHEMA = "range_keeper"


class PositionStateRow(Base):
    __tablename__ = "position_states"
    __table_args__ = (
        UniqueConstraint("pool_id"),
        CheckConstraint("price_lower < price_upper", name="ck_position_band_ordered"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_id: Mapped[str] = mapped_column(Text, nullable=False)
    strategy_address: Mapped[str] = mapped_column(Text, nullable=False)
    price_lower: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    price_upper: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    last_rebalance_price: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    last_rebalance_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    current_volatility: Mapped[float | None] = mapped_column(Numeric(asdecimal=False), nullable=True)
    current_hurst: Mapped[float | None] = mapped_column(Numeric(asdecimal=False), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
