"""Keeper error taxonomy.

Every per-pool failure is one of these; the engine catches them at the
pool-cycle boundary and turns them into a cycle report.
"""

from __future__ import annotations


class KeeperError(Exception):
    """Base class for all keeper errors."""


class DataInsufficiency(KeeperError):
    """Candle window shorter than the analysis minimum. Local skip."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"need at least {required} candles, got {available}")
        self.available = available
        self.required = required


class MarketDataError(KeeperError):
    """Market data provider returned nothing usable."""


class ExternalQuoteUnavailable(KeeperError):
    """Implied-volatility quote could not be fetched. Non-fatal."""


class ExecutionFailure(KeeperError):
    """Strategy transaction failed after exhausting retries."""

    def __init__(self, message: str, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class PersistenceFailure(KeeperError):
    """State read/write failed, or a write was rejected as stale."""


class UnknownPool(KeeperError):
    """No persisted position exists for the requested pool."""
