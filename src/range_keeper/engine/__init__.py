"""Rebalance decision engine and its collaborator interfaces."""

from range_keeper.engine.decision import EngineSettings, RebalanceEngine
from range_keeper.engine.locks import PoolLockRegistry
from range_keeper.engine.ports import (
    ImpliedVolatilityProvider,
    MarketDataProvider,
    PositionStateRepository,
    StrategyExecutor,
)

__all__ = [
    "EngineSettings",
    "ImpliedVolatilityProvider",
    "MarketDataProvider",
    "PoolLockRegistry",
    "PositionStateRepository",
    "RebalanceEngine",
    "StrategyExecutor",
]
