"""Statistical analyst — turns a candle window into one AnalysisSnapshot."""

from __future__ import annotations

from typing import Sequence

from range_keeper.analysis.garch import GarchParams, conditional_volatility
from range_keeper.analysis.hurst import hurst_exponent
from range_keeper.analysis.indicators import (
    HOURS_PER_YEAR,
    drift,
    historical_volatility,
    macd_series,
)
from range_keeper.errors import DataInsufficiency
from range_keeper.models import (
    AnalysisSnapshot,
    Candle,
    DriftVelocity,
    HurstExponent,
    MomentumSnapshot,
    Volatility,
)


class StatisticalAnalyst:
    """Runs the volatility, regime, drift and momentum models over a window.

    Candles must be ordered oldest first. Windows shorter than
    ``min_candles`` raise DataInsufficiency.
    """

    def __init__(
        self,
        min_candles: int = 10,
        periods_per_year: int = HOURS_PER_YEAR,
        garch: GarchParams | None = None,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
    ) -> None:
        self.min_candles = min_candles
        self.periods_per_year = periods_per_year
        self.garch = garch or GarchParams()
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.macd_signal = macd_signal

    def analyze(self, candles: Sequence[Candle]) -> AnalysisSnapshot:
        if len(candles) < self.min_candles:
            raise DataInsufficiency(available=len(candles), required=self.min_candles)

        closes = [c.close for c in candles]
        series = macd_series(closes, self.macd_fast, self.macd_slow, self.macd_signal)
        macd_line, signal_line, _ = series[-1]
        previous = None
        if len(series) > 1:
            prev_macd, prev_signal, _ = series[-2]
            previous = MomentumSnapshot.from_lines(prev_macd, prev_signal)

        return AnalysisSnapshot(
            volatility=Volatility(value=historical_volatility(closes, self.periods_per_year)),
            conditional_volatility=Volatility(
                value=conditional_volatility(closes, self.garch, self.periods_per_year),
            ),
            hurst=HurstExponent(value=hurst_exponent(closes)),
            drift=DriftVelocity(value=drift(closes, self.periods_per_year)),
            momentum=MomentumSnapshot.from_lines(macd_line, signal_line),
            previous_momentum=previous,
        )
