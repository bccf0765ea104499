"""Collaborator interfaces the decision engine depends on.

Concrete implementations live in ``range_keeper.adapters`` and
``range_keeper.db.repository``; tests pass in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from range_keeper.models import Candle, PositionState


class MarketDataProvider(Protocol):
    async def get_history(self, pool_id: str, lookback_hours: int) -> list[Candle]:
        """Candles for the last *lookback_hours*, oldest first. May be short."""
        ...

    async def get_latest_candle(self, pool_id: str) -> Candle:
        ...


class ImpliedVolatilityProvider(Protocol):
    async def get_implied_volatility(self, asset_symbol: str) -> float:
        """Annualised implied volatility as a fraction for an underlying ticker."""
        ...


class PositionStateRepository(Protocol):
    async def find_by_pool_id(self, pool_id: str) -> PositionState | None:
        ...

    async def save(self, state: PositionState) -> None:
        """Persist *state* and bump ``state.version``; stale versions are rejected."""
        ...

    async def save_candles(self, candles: Sequence[Candle], pool_id: str) -> None:
        ...

    async def get_candles(self, pool_id: str) -> list[Candle]:
        ...


class StrategyExecutor(Protocol):
    async def rebalance(self, strategy_address: str) -> str:
        """Submit ``rebalance()`` and return the transaction id."""
        ...

    async def emergency_exit(self, strategy_address: str) -> str:
        ...
