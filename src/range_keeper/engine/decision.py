"""Rebalance decision engine — one analysis/decision cycle per pool."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

import structlog

from range_keeper.analysis import StatisticalAnalyst
from range_keeper.engine.locks import PoolLockRegistry
from range_keeper.engine.ports import (
    ImpliedVolatilityProvider,
    MarketDataProvider,
    PositionStateRepository,
    StrategyExecutor,
)
from range_keeper.errors import DataInsufficiency, ExecutionFailure, UnknownPool
from range_keeper.logging import pool_context
from range_keeper.models import (
    Advisory,
    AnalysisSnapshot,
    Candle,
    CycleReport,
    CycleStatus,
    Pool,
    PositionState,
    Volatility,
    is_strategy_address,
)
from range_keeper.optimizer import RangeOptimizer

log = structlog.get_logger("decision_engine")


@dataclass(frozen=True)
class EngineSettings:
    lookback_hours: int = 48
    position_value_usd: float = 10_000.0
    base_fee_apr: float = 0.10
    edge_fraction: float = 0.1
    initial_band_pct: float = 0.05
    momentum_strength_threshold: float = 0.3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RebalanceEngine:
    """Decides per pool whether to move the band, and moves it.

    Cycle order: load/seed state, fetch candles, analyse, pick the robust
    volatility, save metrics, optimise width, edge test, advisories,
    execute + save the new band. The metrics save always precedes the band
    save, and the band is only saved after the executor succeeded.
    """

    def __init__(
        self,
        market_data: MarketDataProvider,
        repository: PositionStateRepository,
        executor: StrategyExecutor,
        analyst: StatisticalAnalyst | None = None,
        optimizer: RangeOptimizer | None = None,
        implied_vol: ImpliedVolatilityProvider | None = None,
        settings: EngineSettings | None = None,
        locks: PoolLockRegistry | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.market_data = market_data
        self.repository = repository
        self.executor = executor
        self.analyst = analyst or StatisticalAnalyst()
        self.optimizer = optimizer or RangeOptimizer()
        self.implied_vol = implied_vol
        self.settings = settings or EngineSettings()
        self.locks = locks or PoolLockRegistry()
        self.clock = clock

    # ── Batch ─────────────────────────────────────────────────

    async def run_batch(self, pools: Sequence[Pool]) -> list[CycleReport]:
        """Process pools one at a time; a failing pool never stops the batch."""
        log.info("batch_started", pools=len(pools))
        reports = []
        for pool in pools:
            reports.append(await self.process_pool(pool))
        log.info(
            "batch_finished",
            rebalanced=sum(r.status == CycleStatus.REBALANCED for r in reports),
            failed=sum(r.status in (CycleStatus.FAILED, CycleStatus.EXECUTION_FAILED) for r in reports),
        )
        return reports

    async def process_pool(self, pool: Pool) -> CycleReport:
        report = CycleReport(pool_id=pool.address, status=CycleStatus.HELD)
        async with self.locks.lock_for(pool.address):
            with pool_context(pool.address, pool_name=pool.name):
                try:
                    await self._run_cycle(pool, report)
                except Exception as exc:
                    log.exception("pool_cycle_failed")
                    report.status = CycleStatus.FAILED
                    report.error = f"{type(exc).__name__}: {exc}"
        return report

    # ── Cycle ─────────────────────────────────────────────────

    async def _run_cycle(self, pool: Pool, report: CycleReport) -> None:
        state = await self.repository.find_by_pool_id(pool.address)
        if state is None:
            state = await self._initialize(pool)
            report.initialized = True

        if not state.is_active:
            log.info("pool_inactive")
            report.status = CycleStatus.INACTIVE
            return

        strategy = self._strategy_for(pool, state)

        candles = await self.market_data.get_history(pool.address, self.settings.lookback_hours)
        await self.repository.save_candles(candles, pool.address)

        try:
            analysis = self.analyst.analyze(candles)
        except DataInsufficiency as exc:
            log.warning("insufficient_data", available=exc.available, required=exc.required)
            report.status = CycleStatus.SKIPPED_INSUFFICIENT_DATA
            report.error = str(exc)
            return

        robust_vol, source = await self._robust_volatility(pool, analysis)
        report.robust_volatility = robust_vol.value
        report.volatility_source = source
        self._log_analysis(analysis, robust_vol, source)

        state.update_metrics(robust_vol, analysis.hurst)
        await self.repository.save(state)

        optimization = self.optimizer.optimize(
            robust_vol,
            analysis.drift,
            self.settings.position_value_usd,
            self.settings.base_fee_apr,
        )
        report.optimization = optimization

        price = candles[-1].close
        report.price = price
        report.edge_triggered = self._is_edge_triggered(state, price)
        report.advisories = self._advisories(analysis, report.edge_triggered)

        if not report.edge_triggered:
            report.status = CycleStatus.HELD
            return

        log.info(
            "rebalance_triggered",
            price=price,
            lower=state.price_lower,
            upper=state.price_upper,
        )

        if strategy is not None:
            try:
                report.transaction_id = await self.executor.rebalance(strategy)
            except ExecutionFailure as exc:
                log.error(
                    "rebalance_execution_failed",
                    strategy=strategy,
                    attempts=exc.attempts,
                    error=str(exc),
                )
                report.status = CycleStatus.EXECUTION_FAILED
                report.error = str(exc)
                return
        else:
            log.warning("mock_execution_no_strategy", strategy=state.strategy_address)

        width = optimization.optimal_width
        new_lower = price * (1 - width)
        new_upper = price * (1 + width)
        state.rebalance(new_lower, new_upper, price, self.clock())
        await self.repository.save(state)

        report.new_lower = new_lower
        report.new_upper = new_upper
        report.status = CycleStatus.REBALANCED
        log.info(
            "rebalanced",
            lower=round(new_lower, 4),
            upper=round(new_upper, 4),
            width=width,
            tx=report.transaction_id,
        )

    async def _initialize(self, pool: Pool) -> PositionState:
        candle: Candle = await self.market_data.get_latest_candle(pool.address)
        state = PositionState.initial(
            pool_id=pool.address,
            strategy_address=pool.strategy_address,
            price=candle.close,
            now=self.clock(),
            band_pct=self.settings.initial_band_pct,
        )
        await self.repository.save(state)
        log.info(
            "position_initialized",
            lower=state.price_lower,
            upper=state.price_upper,
            price=candle.close,
        )
        return state

    def _strategy_for(self, pool: Pool, state: PositionState) -> str | None:
        """Strategy contract to call for *pool*, or None when there is none.

        A configured strategy wins and is written back to the state on its
        next save; otherwise the one persisted with the position is used, so
        a pool dropped from config still reaches its contract.
        """
        if pool.has_strategy:
            if state.strategy_address.lower() != pool.strategy_address.lower():
                log.info(
                    "strategy_address_updated",
                    previous=state.strategy_address,
                    strategy=pool.strategy_address,
                )
                state.strategy_address = pool.strategy_address
            return pool.strategy_address
        if is_strategy_address(state.strategy_address):
            return state.strategy_address
        return None

    async def _robust_volatility(
        self,
        pool: Pool,
        analysis: AnalysisSnapshot,
    ) -> tuple[Volatility, str]:
        """Implied volatility when a quote is available, GARCH otherwise."""
        if self.implied_vol is not None:
            asset = pool.asset_symbol
            try:
                iv = await self.implied_vol.get_implied_volatility(asset)
                if iv > 0:
                    return Volatility(value=iv), "implied"
                log.warning("implied_vol_unusable", asset=asset, value=iv)
            except Exception as exc:
                log.warning("implied_vol_unavailable", asset=asset, error=str(exc))
        return analysis.conditional_volatility, "conditional"

    def _is_edge_triggered(self, state: PositionState, price: float) -> bool:
        margin = state.width * self.settings.edge_fraction
        lower_threshold = state.price_lower + margin
        upper_threshold = state.price_upper - margin
        return price <= lower_threshold or price >= upper_threshold

    def _advisories(self, analysis: AnalysisSnapshot, edge_triggered: bool) -> set[Advisory]:
        # Advisory only: neither signal alters the edge trigger.
        # TODO: decide with product whether TREND should force an early
        # rebalance and SNAP_BACK should defer an edge-triggered one.
        hurst = analysis.hurst
        momentum = analysis.momentum
        directional = momentum.is_bullish() or momentum.is_bearish()
        strength = momentum.signal_strength()
        advisories: set[Advisory] = set()

        if hurst.is_trending() or (
            directional and strength > self.settings.momentum_strength_threshold
        ):
            advisories.add(Advisory.TREND)
            log.info(
                "trend_regime_detected",
                hurst=round(hurst.value, 2),
                momentum=momentum.direction,
                strength=round(strength, 2),
            )

        if edge_triggered and hurst.is_mean_reverting() and not directional:
            advisories.add(Advisory.SNAP_BACK)
            log.info("mean_reversion_detected", hurst=round(hurst.value, 2))

        previous = analysis.previous_momentum
        if previous is not None:
            if momentum.has_bullish_crossover(previous):
                log.info("momentum_crossover", direction="BULLISH")
            elif momentum.has_bearish_crossover(previous):
                log.info("momentum_crossover", direction="BEARISH")

        return advisories

    def _log_analysis(self, analysis: AnalysisSnapshot, robust: Volatility, source: str) -> None:
        log.info(
            "pool_analysed",
            hist_vol=str(analysis.volatility),
            garch_vol=str(analysis.conditional_volatility),
            robust_vol=str(robust),
            vol_source=source,
            hurst=round(analysis.hurst.value, 2),
            regime=analysis.hurst.regime.value,
            drift=round(analysis.drift.clamped, 2),
            macd=round(analysis.momentum.macd_line, 4),
            macd_signal=round(analysis.momentum.signal_line, 4),
        )

    # ── Operator actions ──────────────────────────────────────

    async def emergency_exit(self, pool: Pool) -> str | None:
        """Pull liquidity via the strategy and stop managing the pool."""
        async with self.locks.lock_for(pool.address):
            with pool_context(pool.address, pool_name=pool.name):
                state = await self.repository.find_by_pool_id(pool.address)
                if state is None:
                    raise UnknownPool(f"no position state for pool {pool.address}")

                tx_id = None
                strategy = self._strategy_for(pool, state)
                if strategy is not None:
                    tx_id = await self.executor.emergency_exit(strategy)
                else:
                    log.warning("mock_emergency_exit_no_strategy", strategy=state.strategy_address)

                state.is_active = False
                await self.repository.save(state)
                log.warning("emergency_exit_completed", tx=tx_id)
                return tx_id
