"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import BigInteger, Integer, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from range_keeper.db.base import Base
from range_keeper.models import Candle

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_candles(closes, start: datetime = T0) -> list[Candle]:
    """Hourly candles with open == high == low == close."""
    return [
        Candle(ts=start + timedelta(hours=i), open=c, high=c, low=c, close=c, volume=1000.0)
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine with all tables created.

    One shared connection so every session sees the same database.
    Patches BigInteger→Integer and drops schemas for SQLite compatibility.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _rec):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    # SQLite doesn't support schemas or BigInteger autoincrement
    for table in Base.metadata.tables.values():
        table.schema = None
        for col in table.columns:
            if isinstance(col.type, BigInteger):
                col.type = Integer()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return sessionmaker(bind=sqlite_engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()
