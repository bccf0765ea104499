"""Concrete collaborators — subgraph market data, DVOL, EVM executor."""

from range_keeper.adapters.deribit import DeribitImpliedVolatility
from range_keeper.adapters.evm_executor import EvmStrategyExecutor
from range_keeper.adapters.uniswap_graph import UniswapGraphMarketData

__all__ = ["DeribitImpliedVolatility", "EvmStrategyExecutor", "UniswapGraphMarketData"]
