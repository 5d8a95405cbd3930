"""Wiring: builds the query engine and scanner from an AppConfig."""
from __future__ import annotations

from dataclasses import dataclass

from .catalog import TrackedTokenCatalog
from .config import AppConfig
from .oracles import PriceCache, PythOracle
from .protocols import build_registry
from .query import MulticallBatcher, QueryExecutor
from .services import TokenNormalizer, WalletScanner


@dataclass
class Engine:
    config: AppConfig
    executor: QueryExecutor
    batcher: MulticallBatcher
    catalog: TrackedTokenCatalog
    prices: PriceCache
    oracle: PythOracle
    normalizer: TokenNormalizer
    scanner: WalletScanner


def build_engine(config: AppConfig) -> Engine:
    executor = QueryExecutor(config)
    batcher = MulticallBatcher(executor)
    catalog = TrackedTokenCatalog(config)
    prices = PriceCache(config.price_oracle.cache_ttl)
    oracle = PythOracle(config.price_oracle.pyth, prices)
    normalizer = TokenNormalizer(config, batcher, catalog, oracle)
    adapters = build_registry(executor, batcher, normalizer, set(config.chains))
    scanner = WalletScanner(executor, batcher, normalizer, catalog, adapters)
    return Engine(config, executor, batcher, catalog, prices, oracle, normalizer, scanner)
