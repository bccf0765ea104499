"""Process-wide SQLAlchemy engine and the session factory the repository uses."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def database_url(url: str) -> str:
    """Pin bare ``postgresql://`` URLs to the psycopg (v3) driver."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def init_engine(url: str, **kwargs) -> sessionmaker[Session]:
    """Create the global engine and return its session factory.

    Sessions do not expire on commit: the repository maps rows onto
    PositionState after the session is closed.
    """
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(database_url(url), pool_pre_ping=True, **kwargs)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _session_factory


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("database not initialised; call init_engine() first")
    return _session_factory


def dispose_engine() -> None:
    """Close pooled connections; safe to call when nothing was initialised."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
