"""Cycle report — what one pool cycle observed and did."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from range_keeper.models.analysis import OptimizationResult


class CycleStatus(str, Enum):
    SKIPPED_INSUFFICIENT_DATA = "SKIPPED_INSUFFICIENT_DATA"
    INACTIVE = "INACTIVE"
    HELD = "HELD"
    REBALANCED = "REBALANCED"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    FAILED = "FAILED"


class Advisory(str, Enum):
    """Regime signals raised during a cycle. They do not change the trigger."""

    TREND = "TREND"
    SNAP_BACK = "SNAP_BACK"


class CycleReport(BaseModel):
    pool_id: str
    status: CycleStatus
    initialized: bool = False
    price: float | None = None
    robust_volatility: float | None = None
    volatility_source: str | None = None  # "implied" or "conditional"
    optimization: OptimizationResult | None = None
    edge_triggered: bool = False
    advisories: set[Advisory] = Field(default_factory=set)
    transaction_id: str | None = None
    new_lower: float | None = None
    new_upper: float | None = None
    error: str | None = None
