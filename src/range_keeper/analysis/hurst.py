"""Hurst exponent via rescaled-range (R/S) analysis."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from range_keeper.analysis.indicators import log_returns

NEUTRAL_HURST = 0.5

# Smallest sub-window for which R/S is meaningful.
MIN_WINDOW = 8


def _window_sizes(n: int, min_window: int = MIN_WINDOW) -> list[int]:
    """Doubling sub-window lengths from *min_window* up to *n*."""
    sizes = []
    size = min_window
    while size <= n:
        sizes.append(size)
        size *= 2
    return sizes


def rescaled_range(series: np.ndarray, window: int) -> float | None:
    """Mean R/S over the non-overlapping chunks of length *window*.

    Chunks with zero standard deviation are ignored. Returns None when no
    chunk yields a finite value.
    """
    values = []
    for start in range(0, series.size - window + 1, window):
        chunk = series[start:start + window]
        deviations = np.cumsum(chunk - chunk.mean())
        r = deviations.max() - deviations.min()
        s = chunk.std()
        if s > 0 and r > 0:
            values.append(r / s)
    if not values:
        return None
    return float(np.mean(values))


def hurst_exponent(closes: Sequence[float], min_window: int = MIN_WINDOW) -> float:
    """Slope of log(R/S) against log(window), clipped to [0, 1].

    Falls back to 0.5 (random walk) when the series is too short to give at
    least two usable sub-window sizes.
    """
    returns = log_returns(closes)
    log_n = []
    log_rs = []
    for window in _window_sizes(returns.size, min_window):
        rs = rescaled_range(returns, window)
        if rs is not None:
            log_n.append(np.log(window))
            log_rs.append(np.log(rs))

    if len(log_n) < 2:
        return NEUTRAL_HURST

    slope, _ = np.polyfit(log_n, log_rs, 1)
    if not np.isfinite(slope):
        return NEUTRAL_HURST
    return float(np.clip(slope, 0.0, 1.0))
