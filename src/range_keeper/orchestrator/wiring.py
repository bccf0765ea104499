"""Build a RebalanceEngine and its collaborators from AppConfig."""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from range_keeper.adapters import (
    DeribitImpliedVolatility,
    EvmStrategyExecutor,
    UniswapGraphMarketData,
)
from range_keeper.analysis import GarchParams, StatisticalAnalyst
from range_keeper.config.schema import AppConfig
from range_keeper.db.repository import SqlPositionStateRepository
from range_keeper.engine import EngineSettings, PoolLockRegistry, RebalanceEngine
from range_keeper.optimizer import OptimizerSettings, RangeOptimizer


def build_analyst(config: AppConfig) -> StatisticalAnalyst:
    a = config.analysis
    return StatisticalAnalyst(
        min_candles=config.engine.min_candles,
        periods_per_year=a.periods_per_year,
        garch=GarchParams(omega=a.garch_omega, alpha=a.garch_alpha, beta=a.garch_beta),
        macd_fast=a.macd_fast,
        macd_slow=a.macd_slow,
        macd_signal=a.macd_signal,
    )


def build_optimizer(config: AppConfig) -> RangeOptimizer:
    return RangeOptimizer(OptimizerSettings(**config.optimizer.model_dump()))


def build_engine_settings(config: AppConfig) -> EngineSettings:
    e = config.engine
    return EngineSettings(
        lookback_hours=e.lookback_hours,
        position_value_usd=e.position_value_usd,
        base_fee_apr=e.base_fee_apr,
        edge_fraction=e.edge_fraction,
        initial_band_pct=e.initial_band_pct,
        momentum_strength_threshold=e.momentum_strength_threshold,
    )


def build_engine(
    config: AppConfig,
    session_factory: Callable[[], Session],
    locks: PoolLockRegistry | None = None,
) -> RebalanceEngine:
    """Wire the live adapters; *locks* is shared when API and scheduler coexist."""
    implied_vol = None
    if config.implied_vol.enabled:
        implied_vol = DeribitImpliedVolatility(
            base_url=config.implied_vol.base_url,
            timeout_s=config.implied_vol.timeout_s,
        )
    return RebalanceEngine(
        market_data=UniswapGraphMarketData(
            subgraph_url=config.market_data.subgraph_url,
            timeout_s=config.market_data.timeout_s,
        ),
        repository=SqlPositionStateRepository(session_factory),
        executor=EvmStrategyExecutor(
            rpc_url=config.executor.rpc_url,
            private_key=config.executor.private_key,
            max_attempts=config.executor.max_attempts,
            base_delay_s=config.executor.base_delay_s,
            fallback_gas_limit=config.executor.fallback_gas_limit,
        ),
        analyst=build_analyst(config),
        optimizer=build_optimizer(config),
        implied_vol=implied_vol,
        settings=build_engine_settings(config),
        locks=locks,
    )


async def close_engine(engine: RebalanceEngine) -> None:
    """Close HTTP clients held by the adapters."""
    for adapter in (engine.market_data, engine.implied_vol):
        close = getattr(adapter, "close", None)
        if close is not None:
            await close()
