"""FastAPI admin surface — force cycles, read pool status, emergency exit."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from datetime import datetime
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from range_keeper.engine import RebalanceEngine
from range_keeper.errors import ExecutionFailure, UnknownPool
from range_keeper.models import CycleReport, Pool
from range_keeper.orchestrator.wiring import close_engine

logger = structlog.get_logger("api")


class RangeOut(BaseModel):
    lower: float
    upper: float


class LastRebalanceOut(BaseModel):
    price: float
    at: datetime


class MetricsOut(BaseModel):
    volatility: Optional[str] = None
    hurst: Optional[float] = None
    regime: Optional[str] = None


class StatusOut(BaseModel):
    pool_id: str
    range: RangeOut
    last_rebalance: LastRebalanceOut
    metrics: MetricsOut
    is_active: bool


class EmergencyExitOut(BaseModel):
    pool_id: str
    transaction_id: Optional[str] = None


def create_app(
    engine: RebalanceEngine,
    pools: list[Pool],
    background: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    """Build the admin app around an already-wired engine.

    *background* (typically the scheduled batch loop) runs as a task for the
    lifetime of the app, so manual and scheduled cycles share one engine and
    therefore one set of pool locks.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        task = asyncio.create_task(background()) if background is not None else None
        yield
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        await close_engine(engine)

    app = FastAPI(
        lifespan=lifespan,
        title="Range Keeper API",
        description="Administrative endpoints for the concentrated-liquidity keeper",
        version="0.1.0",
    )
    by_address = {p.address.lower(): p for p in pools}

    def resolve_pool(address: str) -> Pool:
        pool = by_address.get(address.lower())
        if pool is not None:
            return pool
        # Ad-hoc pools carry no strategy; the engine falls back to the persisted one.
        return Pool(address=address, name="Manual Run")

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "pools": len(pools)}

    @app.post("/api/analyze", response_model=list[CycleReport])
    async def analyze_all():
        logger.info("manual_batch_requested")
        return await engine.run_batch(pools)

    @app.post("/api/analyze/{pool_address}", response_model=CycleReport)
    async def analyze_pool(pool_address: str):
        logger.info("manual_cycle_requested", pool_id=pool_address)
        return await engine.process_pool(resolve_pool(pool_address))

    @app.get("/api/status/{pool_address}", response_model=StatusOut)
    async def status(pool_address: str):
        state = await engine.repository.find_by_pool_id(resolve_pool(pool_address).address)
        if state is None:
            raise HTTPException(status_code=404, detail="No state found for this pool")
        return StatusOut(
            pool_id=state.pool_id,
            range=RangeOut(lower=state.price_lower, upper=state.price_upper),
            last_rebalance=LastRebalanceOut(
                price=state.last_rebalance_price, at=state.last_rebalance_at,
            ),
            metrics=MetricsOut(
                volatility=str(state.current_volatility) if state.current_volatility else None,
                hurst=state.current_hurst.value if state.current_hurst else None,
                regime=state.current_hurst.regime.value if state.current_hurst else None,
            ),
            is_active=state.is_active,
        )

    @app.post("/api/emergency-exit/{pool_address}", response_model=EmergencyExitOut)
    async def emergency_exit(pool_address: str):
        pool = resolve_pool(pool_address)
        try:
            tx_id = await engine.emergency_exit(pool)
        except UnknownPool as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except ExecutionFailure as exc:
            logger.error("emergency_exit_failed", pool_id=pool_address, error=str(exc))
            raise HTTPException(status_code=502, detail=str(exc))
        return EmergencyExitOut(pool_id=pool.address, transaction_id=tx_id)

    return app
