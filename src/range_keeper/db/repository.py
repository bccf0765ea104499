"""SQL-backed PositionStateRepository.

Writes are guarded by the row ``version``: an UPDATE only lands when the
stored version matches the one the caller loaded, so two overlapping cycles
for the same pool cannot silently overwrite each other.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from range_keeper.db.tables import CandleRow, PositionStateRow
from range_keeper.errors import PersistenceFailure
from range_keeper.models import Candle, HurstExponent, PositionState, Volatility


def _aware(ts: datetime) -> datetime:
    """SQLite drops tzinfo; every timestamp we store is UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _to_state(row: PositionStateRow) -> PositionState:
    return PositionState(
        pool_id=row.pool_id,
        strategy_address=row.strategy_address,
        price_lower=row.price_lower,
        price_upper=row.price_upper,
        last_rebalance_price=row.last_rebalance_price,
        last_rebalance_at=_aware(row.last_rebalance_at),
        current_volatility=(
            Volatility(value=row.current_volatility)
            if row.current_volatility is not None else None
        ),
        current_hurst=(
            HurstExponent(value=row.current_hurst)
            if row.current_hurst is not None else None
        ),
        is_active=row.is_active,
        version=row.version,
    )


def _state_values(state: PositionState) -> dict:
    return {
        "strategy_address": state.strategy_address,
        "price_lower": state.price_lower,
        "price_upper": state.price_upper,
        "last_rebalance_price": state.last_rebalance_price,
        "last_rebalance_at": state.last_rebalance_at,
        "current_volatility": state.current_volatility.value if state.current_volatility else None,
        "current_hurst": state.current_hurst.value if state.current_hurst else None,
        "is_active": state.is_active,
        "updated_at": datetime.now(timezone.utc),
    }


class SqlPositionStateRepository:
    """PositionStateRepository over a SQLAlchemy session factory.

    Each call opens its own short-lived session. Any database error is
    re-raised as PersistenceFailure.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def find_by_pool_id(self, pool_id: str) -> PositionState | None:
        try:
            with self._session_factory() as session:
                row = session.execute(
                    select(PositionStateRow).where(PositionStateRow.pool_id == pool_id)
                ).scalar_one_or_none()
                return _to_state(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"failed to load state for {pool_id}") from exc

    async def save(self, state: PositionState) -> None:
        values = _state_values(state)
        try:
            with self._session_factory() as session:
                result = session.execute(
                    update(PositionStateRow)
                    .where(
                        PositionStateRow.pool_id == state.pool_id,
                        PositionStateRow.version == state.version,
                    )
                    .values(**values, version=state.version + 1)
                )
                if result.rowcount == 0:
                    exists = session.execute(
                        select(PositionStateRow.id).where(PositionStateRow.pool_id == state.pool_id)
                    ).first()
                    if exists is not None or state.version != 0:
                        session.rollback()
                        raise PersistenceFailure(
                            f"stale write for pool {state.pool_id} at version {state.version}"
                        )
                    session.add(PositionStateRow(pool_id=state.pool_id, version=1, **values))
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"failed to save state for {state.pool_id}") from exc
        state.version += 1

    async def save_candles(self, candles: Sequence[Candle], pool_id: str) -> None:
        """Upsert candles keyed by (pool_id, ts)."""
        if not candles:
            return
        rows = [
            {
                "pool_id": pool_id,
                "ts": c.ts,
                "open": c.open,
                "high": c.high,
                "low": c.low,
                "close": c.close,
                "volume": c.volume,
            }
            for c in candles
        ]
        try:
            with self._session_factory() as session:
                dialect = session.get_bind().dialect.name
                insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
                stmt = insert(CandleRow).values(rows)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["pool_id", "ts"],
                    set_={
                        col: stmt.excluded[col]
                        for col in ("open", "high", "low", "close", "volume")
                    },
                )
                session.execute(stmt)
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"failed to save candles for {pool_id}") from exc

    async def get_candles(self, pool_id: str) -> list[Candle]:
        try:
            with self._session_factory() as session:
                rows = session.execute(
                    select(CandleRow)
                    .where(CandleRow.pool_id == pool_id)
                    .order_by(CandleRow.ts)
                ).scalars().all()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"failed to load candles for {pool_id}") from exc
        return [
            Candle(
                ts=_aware(r.ts),
                open=r.open,
                high=r.high,
                low=r.low,
                close=r.close,
                volume=r.volume,
            )
            for r in rows
        ]
