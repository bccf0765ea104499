"""Persisted position state for one managed pool."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, model_validator

from range_keeper.models.analysis import HurstExponent, Volatility


class PositionState(BaseModel):
    """Current band of a pool plus the metrics snapshot of the last cycle.

    ``version`` is bumped by the repository on every successful save and
    is used to reject stale writes.
    """

    pool_id: str
    strategy_address: str
    price_lower: float
    price_upper: float
    last_rebalance_price: float
    last_rebalance_at: datetime
    current_volatility: Volatility | None = None
    current_hurst: HurstExponent | None = None
    is_active: bool = True
    version: int = 0

    @model_validator(mode="after")
    def _check_band(self) -> PositionState:
        _check_band(self.price_lower, self.price_upper)
        return self

    @classmethod
    def initial(
        cls,
        pool_id: str,
        strategy_address: str,
        price: float,
        now: datetime,
        band_pct: float = 0.05,
    ) -> PositionState:
        """Seed band of ±band_pct around *price*."""
        return cls(
            pool_id=pool_id,
            strategy_address=strategy_address,
            price_lower=price * (1 - band_pct),
            price_upper=price * (1 + band_pct),
            last_rebalance_price=price,
            last_rebalance_at=now,
        )

    @property
    def width(self) -> float:
        return self.price_upper - self.price_lower

    def update_metrics(self, volatility: Volatility, hurst: HurstExponent) -> None:
        self.current_volatility = volatility
        self.current_hurst = hurst

    def rebalance(self, lower: float, upper: float, price: float, now: datetime) -> None:
        _check_band(lower, upper)
        self.price_lower = lower
        self.price_upper = upper
        self.last_rebalance_price = price
        self.last_rebalance_at = now


def _check_band(lower: float, upper: float) -> None:
    if not lower < upper:
        raise ValueError(f"price_lower ({lower}) must be below price_upper ({upper})")
