"""Pydantic domain models."""

from range_keeper.models.analysis import (
    AnalysisSnapshot,
    DriftVelocity,
    HurstExponent,
    MomentumSnapshot,
    OptimizationResult,
    Regime,
    Volatility,
)
from range_keeper.models.cycle import Advisory, CycleReport, CycleStatus
from range_keeper.models.market import Candle
from range_keeper.models.pool import ZERO_ADDRESS, Pool, is_strategy_address
from range_keeper.models.position import PositionState

__all__ = [
    "Advisory",
    "AnalysisSnapshot",
    "Candle",
    "CycleReport",
    "CycleStatus",
    "DriftVelocity",
    "HurstExponent",
    "MomentumSnapshot",
    "OptimizationResult",
    "Pool",
    "PositionState",
    "Regime",
    "Volatility",
    "ZERO_ADDRESS",
    "is_strategy_address",
]
