"""Database layer — engine, ORM base, SQL repository."""

from range_keeper.db.base import Base
from range_keeper.db.engine import database_url, dispose_engine, get_session_factory, init_engine
from range_keeper.db.repository import SqlPositionStateRepository

__all__ = [
    "Base",
    "SqlPositionStateRepository",
    "database_url",
    "dispose_engine",
    "get_session_factory",
    "init_engine",
]
