"""Technical indicators — pure functions on close-price series."""

from __future__ import annotations

from typing import Sequence

import numpy as np

HOURS_PER_YEAR = 24 * 365


def log_returns(closes: Sequence[float]) -> np.ndarray:
    """Per-candle log returns; empty for fewer than two closes."""
    arr = np.asarray(closes, dtype=np.float64)
    if arr.size < 2:
        return np.empty(0, dtype=np.float64)
    return np.diff(np.log(arr))


def historical_volatility(
    closes: Sequence[float],
    periods_per_year: int = HOURS_PER_YEAR,
) -> float:
    """Annualised sample standard deviation (ddof=1) of log returns."""
    returns = log_returns(closes)
    if returns.size < 2:
        return 0.0
    return float(np.std(returns, ddof=1) * np.sqrt(periods_per_year))


def drift(
    closes: Sequence[float],
    periods_per_year: int = HOURS_PER_YEAR,
) -> float:
    """Annualised mean log return (raw, unclamped)."""
    returns = log_returns(closes)
    if returns.size == 0:
        return 0.0
    return float(np.mean(returns) * periods_per_year)


def ema(values: Sequence[float], period: int) -> list[float]:
    """Exponential moving average seeded with the first value.

    Returns one value per input, so short inputs simply get less smoothing.
    """
    if not values:
        return []
    alpha = 2.0 / (period + 1)
    out = [float(values[0])]
    for v in values[1:]:
        out.append(alpha * float(v) + (1 - alpha) * out[-1])
    return out


def macd_series(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> list[tuple[float, float, float]]:
    """MACD line, signal line and histogram for every close.

    MACD line = EMA(fast) - EMA(slow); signal line = EMA(signal) of the MACD line.
    """
    if fast >= slow:
        raise ValueError(f"fast period ({fast}) must be shorter than slow period ({slow})")
    fast_ema = ema(closes, fast)
    slow_ema = ema(closes, slow)
    macd_line = [f - s for f, s in zip(fast_ema, slow_ema)]
    signal_line = ema(macd_line, signal)
    return [(m, s, m - s) for m, s in zip(macd_line, signal_line)]


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> tuple[float, float, float]:
    """Latest ``(macd_line, signal_line, histogram)``; zeros for an empty series."""
    series = macd_series(closes, fast, slow, signal)
    if not series:
        return (0.0, 0.0, 0.0)
    return series[-1]
