"""Concentrated-liquidity range keeper."""

__version__ = "0.1.0"
