"""Price oracle protocol: price feed abstraction."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for fetching token prices. Must not raise."""

    async def get_price(self, chain: str, address: str, decimals: int = 18) -> float | None: ...
