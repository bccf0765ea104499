"""Band-width optimisation."""

from range_keeper.optimizer.range_optimizer import OptimizerSettings, RangeOptimizer

__all__ = ["OptimizerSettings", "RangeOptimizer"]
