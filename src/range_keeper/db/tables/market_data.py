"""SQLAlchemy ORM models for the range_keeper schema — pool candles."""

from datetime import datetime

from sqlalchemy import BigInteger, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from range_keeper.db.base import Base
from range_keeper.db.tables.position import SCHEMA


class CandleRow(Base):
    __tablename__ = "candles"
    __table_args__ = (
        UniqueConstraint("pool_id", "ts"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    pool_id: Mapped[str] = mapped_column(Text, nullable=False)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    open: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    high: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    low: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    close: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    volume: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
