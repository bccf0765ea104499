"""Tests for the statistical analyst."""

from __future__ import annotations

import pytest

from conftest import make_candles
from range_keeper.analysis import StatisticalAnalyst
from range_keeper.errors import DataInsufficiency


class TestAnalyze:
    def test_too_few_candles(self):
        analyst = StatisticalAnalyst()
        with pytest.raises(DataInsufficiency) as exc_info:
            analyst.analyze(make_candles([100.0] * 9))
        assert exc_info.value.available == 9
        assert exc_info.value.required == 10

    def test_empty_window(self):
        with pytest.raises(DataInsufficiency):
            StatisticalAnalyst().analyze([])

    def test_exactly_minimum(self):
        snapshot = StatisticalAnalyst().analyze(make_candles([100.0 + i for i in range(10)]))
        assert snapshot.hurst.value == 0.5
        assert snapshot.drift.value > 0

    def test_custom_minimum(self):
        with pytest.raises(DataInsufficiency):
            StatisticalAnalyst(min_candles=30).analyze(make_candles([100.0] * 20))

    def test_constant_prices(self):
        snapshot = StatisticalAnalyst().analyze(make_candles([2000.0] * 48))
        assert snapshot.volatility.value == 0.0
        assert snapshot.drift.value == 0.0
        assert snapshot.momentum.signal_strength() == pytest.approx(0.0, abs=1e-9)
        # GARCH still forecasts its baseline variance on a flat window.
        assert snapshot.conditional_volatility.value > 0

    def test_previous_momentum_is_one_step_back(self):
        closes = [100.0 + (i % 3) for i in range(30)]
        snapshot = StatisticalAnalyst().analyze(make_candles(closes))
        current = StatisticalAnalyst().analyze(make_candles(closes[:-1]))
        assert snapshot.previous_momentum is not None
        assert snapshot.previous_momentum.macd_line == pytest.approx(current.momentum.macd_line)

    def test_values_are_bounded(self):
        closes = [100.0 * (1.01 if i % 2 else 0.99) ** (i % 5) for i in range(48)]
        snapshot = StatisticalAnalyst().analyze(make_candles(closes))
        assert 0.0 <= snapshot.hurst.value <= 1.0
        assert snapshot.volatility.value >= 0.0

    def test_histogram_matches_lines(self):
        closes = [100.0 + i * 0.3 + (i % 4) for i in range(40)]
        snapshot = StatisticalAnalyst().analyze(make_candles(closes))
        for momentum in (snapshot.momentum, snapshot.previous_momentum):
            assert momentum.histogram == pytest.approx(momentum.macd_line - momentum.signal_line)
