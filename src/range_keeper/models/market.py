"""Market data models — pool candles."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Candle(BaseModel):
    """One OHLCV bar for a pool. Immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    ts: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
