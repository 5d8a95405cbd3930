"""In-memory price cache with a fixed time-to-live."""
from __future__ import annotations

import time
from typing import Callable


class PriceCache:
    """Prices keyed by (chain, lower-cased address), expiring after ``ttl`` seconds."""

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[float, float]] = {}

    def get(self, chain: str, address: str) -> float | None:
        key = (chain, address.lower())
        entry = self._entries.get(key)
        if entry is None:
            return None
        price, stored_at = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return price

    def set(self, chain: str, address: str, price: float) -> None:
        self._entries[(chain, address.lower())] = (price, self._clock())

    def invalidate(self, chain: str | None = None, address: str | None = None) -> None:
        """Drop one entry, one chain's entries, or everything."""
        if chain is None:
            self._entries.clear()
            return
        if address is not None:
            self._entries.pop((chain, address.lower()), None)
            return
        for key in [k for k in self._entries if k[0] == chain]:
            del self._entries[key]

    def snapshot(self) -> dict[str, dict[str, float]]:
        """Current unexpired prices grouped by chain."""
        now = self._clock()
        prices: dict[str, dict[str, float]] = {}
        for (chain, address), (price, stored_at) in self._entries.items():
            if now - stored_at <= self.ttl:
                prices.setdefault(chain, {})[address] = price
        return prices
