"""Orchestrator runner — runs one batch over all pools every cycle interval."""

from __future__ import annotations

import argparse
import asyncio

import structlog

from range_keeper.config.loader import load_config
from range_keeper.config.schema import AppConfig
from range_keeper.db.engine import dispose_engine, init_engine
from range_keeper.engine import RebalanceEngine
from range_keeper.logging.setup import setup_logging
from range_keeper.models import CycleReport, Pool
from range_keeper.orchestrator.wiring import build_engine, close_engine

log = structlog.get_logger("orchestrator")


async def run_once(engine: RebalanceEngine, pools: list[Pool]) -> list[CycleReport]:
    """One batch; per-pool failures are already folded into the reports."""
    reports = await engine.run_batch(pools)
    for report in reports:
        if report.error:
            log.warning(
                "pool_cycle_error",
                pool_id=report.pool_id,
                status=report.status.value,
                error=report.error,
            )
    return reports


async def run_loop(config: AppConfig, engine: RebalanceEngine, *, max_ticks: int | None = None) -> None:
    """Run batches forever (or *max_ticks* times), sleeping between them."""
    if not config.pools:
        log.error("no_pools_configured")
        return

    log.info(
        "orchestrator_started",
        pools=[p.name for p in config.pools],
        interval_s=config.engine.cycle_interval_s,
    )

    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        try:
            await run_once(engine, config.pools)
        except Exception:
            log.exception("tick_error")
        ticks += 1
        if max_ticks is None or ticks < max_ticks:
            await asyncio.sleep(config.engine.cycle_interval_s)


async def _main_async(config: AppConfig, once: bool) -> None:
    engine = build_engine(config, init_engine(config.database.url))
    try:
        await run_loop(config, engine, max_ticks=1 if once else None)
    finally:
        await close_engine(engine)
        dispose_engine()


def main(config_path: str | None = None, once: bool = False) -> None:
    """Entry point — load config, set up logging, run the async loop."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    asyncio.run(_main_async(config, once))


def cli() -> None:
    parser = argparse.ArgumentParser(description="Range keeper orchestrator")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--once", action="store_true", help="Run a single batch and exit")
    args = parser.parse_args()
    main(config_path=args.config, once=args.once)
