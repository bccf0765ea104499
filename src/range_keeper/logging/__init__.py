"""Structured logging."""

from range_keeper.logging.setup import get_logger, pool_context, setup_logging

__all__ = ["get_logger", "pool_context", "setup_logging"]
