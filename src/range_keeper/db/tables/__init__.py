"""Import all table modules so Base.metadata knows about them."""

from range_keeper.db.tables.market_data import CandleRow
from range_keeper.db.tables.position import SCHEMA, PositionStateRow

__all__ = ["CandleRow", "PositionStateRow", "SCHEMA"]
