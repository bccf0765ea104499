"""Scheduled batch driver."""

from range_keeper.orchestrator.runner import run_loop, run_once
from range_keeper.orchestrator.wiring import build_engine

__all__ = ["build_engine", "run_loop", "run_once"]
