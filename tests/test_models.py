"""Tests for domain models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from range_keeper.models import (
    ZERO_ADDRESS,
    Advisory,
    CycleReport,
    CycleStatus,
    DriftVelocity,
    HurstExponent,
    MomentumSnapshot,
    Pool,
    PositionState,
    Regime,
    Volatility,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestVolatility:
    def test_str_formats_percent(self):
        assert str(Volatility(value=0.65)) == "65.00%"

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            Volatility(value=-0.1)

    def test_frozen(self):
        v = Volatility(value=0.5)
        with pytest.raises(ValidationError):
            v.value = 0.6


class TestHurstExponent:
    @pytest.mark.parametrize("value,regime", [
        (0.7, Regime.TRENDING),
        (0.56, Regime.TRENDING),
        (0.55, Regime.RANDOM_WALK),
        (0.5, Regime.RANDOM_WALK),
        (0.45, Regime.RANDOM_WALK),
        (0.3, Regime.MEAN_REVERTING),
    ])
    def test_regime(self, value, regime):
        assert HurstExponent(value=value).regime == regime

    def test_neutral(self):
        h = HurstExponent.neutral()
        assert h.value == 0.5
        assert not h.is_trending()
        assert not h.is_mean_reverting()

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            HurstExponent(value=1.2)


class TestDriftVelocity:
    def test_clamped_caps_positive(self):
        assert DriftVelocity(value=12.0).clamped == 5.0

    def test_clamped_caps_negative(self):
        assert DriftVelocity(value=-12.0).clamped == -5.0

    def test_clamped_passes_small_values(self):
        assert DriftVelocity(value=-1.5).clamped == -1.5

    def test_zero(self):
        assert DriftVelocity(value=0.0).clamped == 0.0


class TestMomentumSnapshot:
    def test_from_lines_computes_histogram(self):
        m = MomentumSnapshot.from_lines(1.5, 1.0)
        assert m.histogram == pytest.approx(0.5)
        assert m.is_bullish()
        assert not m.is_bearish()
        assert m.direction == "BULLISH"

    def test_bearish(self):
        m = MomentumSnapshot.from_lines(-0.2, 0.1)
        assert m.is_bearish()
        assert m.direction == "BEARISH"

    def test_neutral_when_lines_equal(self):
        m = MomentumSnapshot.from_lines(0.3, 0.3)
        assert not m.is_bullish()
        assert not m.is_bearish()
        assert m.direction == "NEUTRAL"

    def test_signal_strength_scales_and_saturates(self):
        assert MomentumSnapshot.from_lines(0.02, 0.0).signal_strength() == pytest.approx(0.2)
        assert MomentumSnapshot.from_lines(0.0, 0.5).signal_strength() == 1.0

    def test_bullish_crossover(self):
        prev = MomentumSnapshot.from_lines(0.9, 1.0)
        cur = MomentumSnapshot.from_lines(1.1, 1.0)
        assert cur.has_bullish_crossover(prev)
        assert not cur.has_bearish_crossover(prev)

    def test_bullish_crossover_from_equal_lines(self):
        prev = MomentumSnapshot.from_lines(1.0, 1.0)
        cur = MomentumSnapshot.from_lines(1.2, 1.0)
        assert cur.has_bullish_crossover(prev)
        assert not cur.has_bearish_crossover(prev)

    def test_bearish_crossover(self):
        prev = MomentumSnapshot.from_lines(1.0, 1.0)
        cur = MomentumSnapshot.from_lines(0.8, 1.0)
        assert cur.has_bearish_crossover(prev)
        assert not cur.has_bullish_crossover(prev)

    def test_no_crossover_when_already_above(self):
        prev = MomentumSnapshot.from_lines(1.2, 1.0)
        cur = MomentumSnapshot.from_lines(1.3, 1.0)
        assert not cur.has_bullish_crossover(prev)

    def test_histogram_derived_when_omitted(self):
        m = MomentumSnapshot(macd_line=0.7, signal_line=0.2)
        assert m.histogram == pytest.approx(0.5)

    def test_inconsistent_histogram_rejected(self):
        with pytest.raises(ValidationError):
            MomentumSnapshot(macd_line=0.7, signal_line=0.2, histogram=3.0)


class TestPool:
    def test_default_strategy_is_sentinel(self):
        pool = Pool(address="0xabc", name="ETH/USDC 0.05%")
        assert pool.strategy_address == ZERO_ADDRESS
        assert not pool.has_strategy

    def test_has_strategy(self):
        pool = Pool(address="0xabc", name="ETH/USDC 0.05%", strategy_address="0x1234")
        assert pool.has_strategy

    def test_empty_strategy(self):
        assert not Pool(address="0xabc", name="x", strategy_address="").has_strategy

    def test_address_lowercased(self):
        pool = Pool(address="0xABCdef", name="ETH/USDC 0.05%")
        assert pool.address == "0xabcdef"
        assert pool == Pool(address="0xabcdef", name="ETH/USDC 0.05%")

    @pytest.mark.parametrize("name,symbol", [
        ("WBTC/USDC 0.3%", "BTC"),
        ("WETH/USDT 0.3%", "ETH"),
        ("ETH/USDC 0.05%", "ETH"),
        ("link/usdc 1%", "LINK"),
    ])
    def test_asset_symbol(self, name, symbol):
        assert Pool(address="0xabc", name=name).asset_symbol == symbol


class TestPositionState:
    def test_initial_band(self):
        state = PositionState.initial("0xpool", ZERO_ADDRESS, price=100.0, now=NOW)
        assert state.price_lower == pytest.approx(95.0)
        assert state.price_upper == pytest.approx(105.0)
        assert state.last_rebalance_price == 100.0
        assert state.last_rebalance_at == NOW
        assert state.is_active
        assert state.version == 0
        assert state.current_volatility is None

    def test_inverted_band_rejected(self):
        with pytest.raises(ValidationError):
            PositionState(
                pool_id="0xpool",
                strategy_address=ZERO_ADDRESS,
                price_lower=110.0,
                price_upper=90.0,
                last_rebalance_price=100.0,
                last_rebalance_at=NOW,
            )

    def test_width(self):
        state = PositionState.initial("0xpool", ZERO_ADDRESS, price=2000.0, now=NOW)
        assert state.width == pytest.approx(200.0)

    def test_rebalance_updates_band(self):
        state = PositionState.initial("0xpool", ZERO_ADDRESS, price=100.0, now=NOW)
        later = datetime(2024, 1, 2, tzinfo=timezone.utc)
        state.rebalance(97.0, 103.0, 100.0, later)
        assert (state.price_lower, state.price_upper) == (97.0, 103.0)
        assert state.last_rebalance_at == later

    def test_rebalance_rejects_inverted_band(self):
        state = PositionState.initial("0xpool", ZERO_ADDRESS, price=100.0, now=NOW)
        with pytest.raises(ValueError):
            state.rebalance(103.0, 97.0, 100.0, NOW)
        assert state.price_lower == pytest.approx(95.0)

    def test_update_metrics(self):
        state = PositionState.initial("0xpool", ZERO_ADDRESS, price=100.0, now=NOW)
        state.update_metrics(Volatility(value=0.6), HurstExponent(value=0.4))
        assert state.current_volatility.value == 0.6
        assert state.current_hurst.value == 0.4


class TestCycleReport:
    def test_defaults(self):
        report = CycleReport(pool_id="0xpool", status=CycleStatus.HELD)
        assert report.advisories == set()
        assert not report.initialized
        assert report.transaction_id is None

    def test_json_serialises_advisories(self):
        report = CycleReport(
            pool_id="0xpool",
            status=CycleStatus.REBALANCED,
            advisories={Advisory.TREND},
        )
        data = report.model_dump(mode="json")
        assert data["status"] == "REBALANCED"
        assert data["advisories"] == ["TREND"]
