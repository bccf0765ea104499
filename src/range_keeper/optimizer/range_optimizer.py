"""Range optimizer — cost/benefit choice of the band half-width.

For a half-width ``w`` the model is:

    gross_fee_apr(w)      = base_fee_apr * reference_width / w
    diffusion_rate(w)     = volatility**2 / w**2     (band exits per year)
    drift_rate(w)         = |drift| / w
    annual_cost(w)        = (diffusion_rate + drift_rate) * rebalance_cost_usd
    net_yield(w)          = gross_fee_apr(w) - annual_cost(w) / position_value_usd

Widths are scanned smallest first and a candidate only replaces the running
best on a strict improvement, so ties resolve to the narrower band.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from range_keeper.models import DriftVelocity, OptimizationResult, Volatility


@dataclass(frozen=True)
class OptimizerSettings:
    min_width: float = 0.005
    max_width: float = 0.20
    step: float = 0.005
    reference_width: float = 0.10
    rebalance_cost_usd: float = 50.0  # gas + swap slippage per rebalance
    default_width: float = 0.05

    def __post_init__(self) -> None:
        if self.min_width <= 0:
            raise ValueError("min_width must be positive")
        if self.step <= 0 or self.max_width < self.min_width:
            raise ValueError("invalid width grid")


class RangeOptimizer:
    def __init__(self, settings: OptimizerSettings | None = None) -> None:
        self.settings = settings or OptimizerSettings()
        self._widths = self._build_grid()

    def _build_grid(self) -> tuple[float, ...]:
        s = self.settings
        count = int(round((s.max_width - s.min_width) / s.step)) + 1
        # Rounded so 0.05 is exactly 0.05 rather than an accumulated float.
        return tuple(round(s.min_width + i * s.step, 10) for i in range(count))

    @property
    def widths(self) -> tuple[float, ...]:
        """Candidate half-widths in scan order."""
        return self._widths

    # ── Model terms ───────────────────────────────────────────

    def gross_fee_apr(self, width: float, base_fee_apr: float) -> float:
        return base_fee_apr * (self.settings.reference_width / width)

    @staticmethod
    def diffusion_rate(width: float, volatility: float) -> float:
        return volatility ** 2 / width ** 2

    @staticmethod
    def drift_rate(width: float, drift: float) -> float:
        return abs(drift) / width

    def net_yield(
        self,
        width: float,
        volatility: float,
        drift: float,
        position_value_usd: float,
        base_fee_apr: float,
    ) -> float:
        frequency = self.diffusion_rate(width, volatility) + self.drift_rate(width, drift)
        annual_cost = frequency * self.settings.rebalance_cost_usd
        return self.gross_fee_apr(width, base_fee_apr) - annual_cost / position_value_usd

    # ── Selection ─────────────────────────────────────────────

    def optimize(
        self,
        volatility: Volatility,
        drift: DriftVelocity,
        position_value_usd: float,
        base_fee_apr: float,
    ) -> OptimizationResult:
        """Return the width with the highest modelled net yield.

        Uses the clamped drift, so the result is identical for +d and -d.
        """
        if position_value_usd <= 0:
            raise ValueError(f"position_value_usd must be positive, got {position_value_usd}")

        best_width = self.settings.default_width
        best_yield = -math.inf
        for width in self._widths:
            candidate = self.net_yield(
                width,
                volatility.value,
                drift.clamped,
                position_value_usd,
                base_fee_apr,
            )
            if candidate > best_yield:
                best_yield = candidate
                best_width = width

        return OptimizationResult(optimal_width=best_width, estimated_net_yield=best_yield)
