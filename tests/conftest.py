"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from eth_abi import encode

from walletscan.catalog import TrackedTokenCatalog
from walletscan.config import (
    AppConfig,
    ChainConfig,
    PriceOracleConfig,
    PythConfig,
    QueryConfig,
    WalletConfig,
)
from walletscan.constants import IGNORED_ERRORS
from walletscan.models import TokenData

WAVAX = "0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7"
USDC = "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E"
UNTRACKED = "0x1111111111111111111111111111111111111111"
WALLET = "0x2222222222222222222222222222222222222222"
MULTICALL = "0xcA11bde05977b3631167028862bE2a173976CA11"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=(
            "https://rpc1.example.com",
            "https://rpc2.example.com",
            "https://rpc3.example.com",
        ),
        rpc_timeout=10,
        multicall=MULTICALL,
        native_symbol="AVAX",
        max_concurrency=4,
        tokens=(
            TokenData(symbol="WAVAX", address=WAVAX, decimals=18, logo="https://logo/wavax.png"),
            TokenData(symbol="USDC", address=USDC, decimals=6, logo="https://logo/usdc.png"),
        ),
        logos={"JOE": "https://logo/joe.png"},
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        query=QueryConfig(max_retries=3, ignored_errors=IGNORED_ERRORS),
        chains={
            "avax": sample_chain_config,
            "poly": ChainConfig(
                rpc_endpoints=("https://poly1.example.com", "https://poly2.example.com"),
                multicall=MULTICALL,
                native_symbol="MATIC",
            ),
        },
        price_oracle=PriceOracleConfig(
            cache_ttl=60.0,
            pyth=PythConfig(
                hermes_url="https://hermes.example.com",
                feeds={"avax": {WAVAX.lower(): "aaa111", USDC.lower(): "ccc333"}},
            ),
        ),
        wallets=(WalletConfig(label="test-wallet", address=WALLET, chains=("avax",)),),
    )


@pytest.fixture()
def catalog(sample_app_config: AppConfig) -> TrackedTokenCatalog:
    return TrackedTokenCatalog(sample_app_config)


@pytest.fixture()
def mock_oracle() -> AsyncMock:
    oracle = AsyncMock()
    oracle.get_price.return_value = 2.0
    return oracle


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


class FakeClient:
    """Stand-in for EvmClient; records every call and replays scripted results."""

    def __init__(self, endpoints: list[str], eth_call: Any = None, balance: Any = None) -> None:
        self.endpoints = list(endpoints)
        self.calls: list[tuple[str, str, bytes]] = []
        self.balance_calls: list[str] = []
        self._eth_call = eth_call
        self._balance = balance

    async def eth_call(self, endpoint: str, to: str, data: bytes) -> bytes:
        self.calls.append((endpoint, to, data))
        if isinstance(self._eth_call, Exception):
            raise self._eth_call
        if callable(self._eth_call):
            return self._eth_call(endpoint, to, data)
        return self._eth_call

    async def get_balance(self, endpoint: str, wallet: str) -> int:
        self.balance_calls.append(endpoint)
        if isinstance(self._balance, Exception):
            raise self._balance
        return self._balance


@pytest.fixture()
def make_client() -> type[FakeClient]:
    return FakeClient


@pytest.fixture()
def multicall_response():
    """Encoder for tryAggregate return values."""

    def _encode(items: list[tuple[bool, bytes]]) -> bytes:
        return encode(["(bool,bytes)[]"], [items])

    return _encode


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    query:
      max_retries: 2
      ignored_errors:
        - chain: poly
          address: "0x8AAA5E259F74C8114E0A471D9F2ADFC66BFE09ED"
    chains:
      avax:
        rpc_endpoints: ["https://rpc.example.com", "${EXTRA_RPC}"]
        rpc_timeout: 10
        multicall: "0xcA11bde05977b3631167028862bE2a173976CA11"
        max_concurrency: 4
        tokens:
          - {symbol: WAVAX, address: "0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7", decimals: 18}
        logos: {JOE: "https://logo/joe.png"}
      bsc:
        rpc_endpoints: ["https://bsc.example.com"]
        multicall: "0xcA11bde05977b3631167028862bE2a173976CA11"
    price_oracle:
      provider: pyth
      cache_ttl: 120
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds:
          avax: {"0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7": "aaa"}
    wallets:
      - label: test-wallet
        address: "0x2222222222222222222222222222222222222222"
        chains: [avax]
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
