"""Pool descriptor — which pool to manage and which strategy contract owns it."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Wrapped tickers are quoted on option venues under their underlying.
_UNDERLYING = {
    "WBTC": "BTC",
    "WETH": "ETH",
}


def is_strategy_address(address: str | None) -> bool:
    """False for an empty address or the zero-address placeholder."""
    return bool(address) and address.lower() != ZERO_ADDRESS


class Pool(BaseModel):
    address: str
    name: str
    strategy_address: str = ZERO_ADDRESS

    # Pool ids key the lock registry and the position_states table.
    @field_validator("address")
    @classmethod
    def _normalise_address(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def has_strategy(self) -> bool:
        """False while the strategy address is still the placeholder."""
        return is_strategy_address(self.strategy_address)

    @property
    def asset_symbol(self) -> str:
        """Underlying ticker of the base token, e.g. "WBTC/USDC 0.3%" -> "BTC"."""
        base = self.name.split("/")[0].strip().upper()
        return _UNDERLYING.get(base, base)
