"""Statistical analysis — indicators, conditional volatility, regime."""

from range_keeper.analysis.analyst import StatisticalAnalyst
from range_keeper.analysis.garch import GarchParams

__all__ = ["GarchParams", "StatisticalAnalyst"]
