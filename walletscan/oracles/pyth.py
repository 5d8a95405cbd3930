"""Pyth Network price oracle."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from .cache import PriceCache

logger = logging.getLogger(__name__)


class PythOracle:
    """Token prices from Pyth Hermes, keyed by (chain, token address).

    Each configured token address maps to a Pyth feed id. Fetched prices are
    stored in the shared ``cache``; lookups never raise.
    """

    def __init__(self, config: PythConfig, cache: PriceCache) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = {
            chain: {address.lower(): feed for address, feed in feeds.items()}
            for chain, feeds in config.feeds.items()
        }
        self.cache = cache

    async def _fetch_feeds(self, feed_ids: list[str]) -> dict[str, float]:
        """Fetch the latest price for each feed id; {feed_id: price}."""
        if not feed_ids:
            return {}

        params = [("ids[]", feed_id) for feed_id in feed_ids]
        tls = ssl.create_default_context(cafile=certifi.where())

        async with aiohttp.ClientSession(connector=aiohttp.TCPConnector(ssl=tls)) as session:
            async with session.get(self.hermes_url, params=params) as response:
                if response.status != 200:
                    raise RuntimeError(f"Hermes returned HTTP {response.status}")
                body = await response.json()

        prices: dict[str, float] = {}
        for update in body.get("parsed", []):
            quote = update.get("price", {})
            mantissa = int(quote.get("price", 0))
            exponent = int(quote.get("expo", 0))
            prices[_normalize_feed_id(update.get("id", ""))] = mantissa * (10**exponent)
        return prices

    async def get_price(self, chain: str, address: str, decimals: int = 18) -> float | None:
        """Price of one token, or None when unknown or unavailable."""
        cached = self.cache.get(chain, address)
        if cached is not None:
            return cached

        feed_id = self.price_feeds.get(chain, {}).get(address.lower())
        if feed_id is None:
            return None

        try:
            prices = await self._fetch_feeds([feed_id])
        except Exception as e:
            logger.error("Error fetching price for %s on %s: %s", address, chain, e)
            return None

        price = prices.get(_normalize_feed_id(feed_id))
        if price is not None:
            self.cache.set(chain, address, price)
        return price

    async def fetch_chain_prices(self, chain: str) -> dict[str, float]:
        """Populate the cache with every configured token price on ``chain``."""
        feeds = self.price_feeds.get(chain, {})
        if not feeds:
            return {}

        # Create reverse mapping from feed ID to token addresses
        id_to_addresses: dict[str, list[str]] = {}
        for address, feed_id in feeds.items():
            id_to_addresses.setdefault(_normalize_feed_id(feed_id), []).append(address)

        try:
            by_feed = await self._fetch_feeds(sorted(set(feeds.values())))
        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return {}

        prices: dict[str, float] = {}
        for feed_id, price in by_feed.items():
            for address in id_to_addresses.get(feed_id, []):
                prices[address] = price
                self.cache.set(chain, address, price)

        logger.info("Fetched %d prices from Pyth Network for %s", len(prices), chain.upper())
        return prices


def _normalize_feed_id(feed_id: str) -> str:
    """Hermes returns ids without the 0x prefix."""
    return feed_id.lower().removeprefix("0x")
