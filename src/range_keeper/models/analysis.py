"""Analysis value objects — volatility, regime, drift, momentum."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Volatility(BaseModel):
    """Annualised volatility as a fraction (0.65 == 65%)."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(ge=0.0)

    def __str__(self) -> str:
        return f"{self.value * 100:.2f}%"


class Regime(str, Enum):
    TRENDING = "TRENDING"
    MEAN_REVERTING = "MEAN_REVERTING"
    RANDOM_WALK = "RANDOM_WALK"


class HurstExponent(BaseModel):
    """Hurst exponent with its regime classification.

    H > 0.55 is persistent (trending), H < 0.45 anti-persistent
    (mean-reverting), anything in between is treated as a random walk.
    """

    model_config = ConfigDict(frozen=True)

    TRENDING_ABOVE: ClassVar[float] = 0.55
    MEAN_REVERTING_BELOW: ClassVar[float] = 0.45

    value: float = Field(ge=0.0, le=1.0)

    @classmethod
    def neutral(cls) -> HurstExponent:
        return cls(value=0.5)

    def is_trending(self) -> bool:
        return self.value > self.TRENDING_ABOVE

    def is_mean_reverting(self) -> bool:
        return self.value < self.MEAN_REVERTING_BELOW

    @property
    def regime(self) -> Regime:
        if self.is_trending():
            return Regime.TRENDING
        if self.is_mean_reverting():
            return Regime.MEAN_REVERTING
        return Regime.RANDOM_WALK


class DriftVelocity(BaseModel):
    """Annualised mean log return.

    ``clamped`` caps the magnitude at ``MAX_MAGNITUDE`` and keeps the sign.
    """

    model_config = ConfigDict(frozen=True)

    MAX_MAGNITUDE: ClassVar[float] = 5.0

    value: float

    @property
    def clamped(self) -> float:
        if self.value == 0:
            return 0.0
        magnitude = min(self.MAX_MAGNITUDE, abs(self.value))
        return magnitude if self.value > 0 else -magnitude


class MomentumSnapshot(BaseModel):
    """MACD-style oscillator reading: fast/slow line, signal line, histogram."""

    model_config = ConfigDict(frozen=True)

    macd_line: float
    signal_line: float
    histogram: float

    @model_validator(mode="before")
    @classmethod
    def _derive_histogram(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        macd_line, signal_line = data.get("macd_line"), data.get("signal_line")
        if not isinstance(macd_line, (int, float)) or not isinstance(signal_line, (int, float)):
            return data
        expected = macd_line - signal_line
        given = data.get("histogram")
        if given is None:
            return {**data, "histogram": expected}
        if isinstance(given, (int, float)) and not math.isclose(given, expected, rel_tol=1e-9, abs_tol=1e-12):
            raise ValueError(f"histogram {given} != macd_line - signal_line ({expected})")
        return data

    @classmethod
    def from_lines(cls, macd_line: float, signal_line: float) -> MomentumSnapshot:
        return cls(macd_line=macd_line, signal_line=signal_line)

    def is_bullish(self) -> bool:
        return self.macd_line > self.signal_line

    def is_bearish(self) -> bool:
        return self.macd_line < self.signal_line

    def signal_strength(self) -> float:
        """Trend strength in [0, 1]; a histogram of ±0.1 already saturates."""
        return min(1.0, abs(self.histogram) * 10)

    def has_bullish_crossover(self, previous: MomentumSnapshot) -> bool:
        return (
            previous.macd_line <= previous.signal_line
            and self.macd_line > self.signal_line
        )

    def has_bearish_crossover(self, previous: MomentumSnapshot) -> bool:
        return (
            previous.macd_line >= previous.signal_line
            and self.macd_line < self.signal_line
        )

    @property
    def direction(self) -> str:
        if self.is_bullish():
            return "BULLISH"
        if self.is_bearish():
            return "BEARISH"
        return "NEUTRAL"


class AnalysisSnapshot(BaseModel):
    """Output of one analysis pass over one candle window."""

    volatility: Volatility
    conditional_volatility: Volatility
    hurst: HurstExponent
    drift: DriftVelocity
    momentum: MomentumSnapshot
    previous_momentum: MomentumSnapshot | None = None


class OptimizationResult(BaseModel):
    """Optimal band half-width (0.10 == ±10%) and its modelled net yield."""

    optimal_width: float
    estimated_net_yield: float
