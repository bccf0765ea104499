"""GARCH(1,1) conditional variance forecast with fixed parameters.

    sigma2[t] = omega + alpha * r[t-1]**2 + beta * sigma2[t-1]

The recursion is seeded with the sample variance of the window and run over
every return; the final value is the one-step-ahead forecast. Parameters are
not re-fitted per call. The defaults are calibrated for hourly log returns
of major crypto pairs (long-run variance omega / (1 - alpha - beta) ~ 4e-5
per hour, about 59% annualised).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from range_keeper.analysis.indicators import HOURS_PER_YEAR, log_returns


@dataclass(frozen=True)
class GarchParams:
    omega: float = 2e-6
    alpha: float = 0.10
    beta: float = 0.85

    def __post_init__(self) -> None:
        if self.omega < 0 or self.alpha < 0 or self.beta < 0:
            raise ValueError("GARCH parameters must be non-negative")
        if self.alpha + self.beta >= 1:
            raise ValueError("alpha + beta must be < 1 for a stationary process")


def forecast_variance(returns: Sequence[float], params: GarchParams = GarchParams()) -> float:
    """One-step-ahead per-period variance forecast."""
    arr = np.asarray(returns, dtype=np.float64)
    if arr.size == 0:
        return params.omega / (1 - params.alpha - params.beta)
    variance = float(np.var(arr, ddof=1)) if arr.size > 1 else float(arr[0] ** 2)
    for r in arr:
        variance = params.omega + params.alpha * r * r + params.beta * variance
    return float(variance)


def conditional_volatility(
    closes: Sequence[float],
    params: GarchParams = GarchParams(),
    periods_per_year: int = HOURS_PER_YEAR,
) -> float:
    """Annualised GARCH(1,1) volatility forecast for the next period."""
    variance = forecast_variance(log_returns(closes), params)
    return float(np.sqrt(variance * periods_per_year))
