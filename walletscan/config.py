"""Settings for the scanner, read from config.yaml with ${VAR} expansion from the environment / .env."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import DEFAULT_DECIMALS, DEFAULT_TOKEN_LOGO, IGNORED_ERRORS, MAX_QUERY_RETRIES, native_symbol
from .models import TokenData

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"
DEFAULT_HERMES_URL = "https://hermes.pyth.network/v2/updates/price/latest"
SUPPORTED_PRICE_PROVIDERS = ("pyth",)

# ---------------------------------------------------------------------------
# Settings records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryConfig:
    max_retries: int = MAX_QUERY_RETRIES
    ignored_errors: tuple[tuple[str, str], ...] = IGNORED_ERRORS


@dataclass(frozen=True)
class ChainConfig:
    """Connection and token settings for one EVM chain."""

    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    multicall: str = ""
    native_symbol: str = ""
    max_concurrency: int = 8
    tokens: tuple[TokenData, ...] = ()
    logos: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = DEFAULT_HERMES_URL
    # chain -> lower-cased token address -> feed id
    feeds: dict[str, dict[str, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    cache_ttl: float = 300.0
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    address: str = ""
    chains: tuple[str, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    query: QueryConfig = field(default_factory=QueryConfig)
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    wallets: tuple[WalletConfig, ...] = ()

    def endpoints(self, chain: str) -> tuple[str, ...]:
        return self.chains[chain].rpc_endpoints

    def multicall_address(self, chain: str) -> str:
        return self.chains[chain].multicall


# ---------------------------------------------------------------------------
# ${VAR} expansion
# ---------------------------------------------------------------------------

_VAR_PATTERN = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(node: Any) -> Any:
    """Expand ${VAR} inside every string of a parsed YAML tree; unset vars become ""."""
    if isinstance(node, str):
        return _VAR_PATTERN.sub(lambda match: os.environ.get(match.group(1), ""), node)
    if isinstance(node, list):
        return [_interpolate_env(item) for item in node]
    if isinstance(node, dict):
        return {key: _interpolate_env(item) for key, item in node.items()}
    return node


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------


def _build_query(section: dict[str, Any]) -> QueryConfig:
    entries = section.get("ignored_errors")
    if entries is None:
        ignored = IGNORED_ERRORS
    else:
        ignored = tuple((e.get("chain", ""), e.get("address", "").lower()) for e in entries)
    return QueryConfig(
        max_retries=int(section.get("max_retries", MAX_QUERY_RETRIES)),
        ignored_errors=ignored,
    )


def _build_tokens(entries: list[dict[str, Any]]) -> tuple[TokenData, ...]:
    return tuple(
        TokenData(
            symbol=e.get("symbol", ""),
            address=e.get("address", ""),
            decimals=int(e.get("decimals", DEFAULT_DECIMALS)),
            logo=e.get("logo", DEFAULT_TOKEN_LOGO),
        )
        for e in entries
    )


def _build_chain(chain_id: str, section: dict[str, Any]) -> ChainConfig:
    # Unset ${VAR} endpoints interpolate to "" and are dropped.
    endpoints = tuple(url for url in section.get("rpc_endpoints", []) if url)
    return ChainConfig(
        rpc_endpoints=endpoints,
        rpc_timeout=int(section.get("rpc_timeout", 30)),
        multicall=section.get("multicall", ""),
        native_symbol=section.get("native_symbol") or native_symbol(chain_id),
        max_concurrency=int(section.get("max_concurrency", 8)),
        tokens=_build_tokens(section.get("tokens", [])),
        logos=dict(section.get("logos", {})),
    )


def _build_price_oracle(section: dict[str, Any]) -> PriceOracleConfig:
    pyth_section = section.get("pyth", {})
    feeds: dict[str, dict[str, str]] = {}
    for chain_id, by_address in pyth_section.get("feeds", {}).items():
        feeds[chain_id] = {addr.lower(): feed for addr, feed in by_address.items()}
    return PriceOracleConfig(
        provider=section.get("provider", "pyth"),
        cache_ttl=float(section.get("cache_ttl", 300.0)),
        pyth=PythConfig(pyth_section.get("hermes_url", DEFAULT_HERMES_URL), feeds),
    )


def _build_wallet(entry: dict[str, Any]) -> WalletConfig:
    return WalletConfig(
        label=entry.get("label", ""),
        address=entry.get("address", ""),
        chains=tuple(entry.get("chains", [])),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Read, expand and check the YAML settings file.

    ``.env`` is loaded first so its variables take part in ${VAR} expansion.
    Without an explicit path, ``config.yaml`` next to the package is used.
    """
    load_dotenv()

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open() as fh:
        document = _interpolate_env(yaml.safe_load(fh) or {})

    cfg = AppConfig(
        query=_build_query(document.get("query", {})),
        chains={
            chain_id: _build_chain(chain_id, section)
            for chain_id, section in document.get("chains", {}).items()
        },
        price_oracle=_build_price_oracle(document.get("price_oracle", {})),
        wallets=tuple(_build_wallet(w) for w in document.get("wallets", [])),
    )
    _validate(cfg)

    logger.info("Loaded %d chain(s) from %s", len(cfg.chains), path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """ValueError on the first inconsistency found."""
    if not cfg.chains:
        raise ValueError("At least one chain must be configured")
    if cfg.query.max_retries < 1:
        raise ValueError("query.max_retries must be at least 1")
    if cfg.price_oracle.provider not in SUPPORTED_PRICE_PROVIDERS:
        raise ValueError(f"Unsupported price_oracle.provider '{cfg.price_oracle.provider}'")

    for chain_id, chain in cfg.chains.items():
        if not chain.rpc_endpoints:
            raise ValueError(f"Chain '{chain_id}' has no RPC endpoints")
        if not chain.multicall:
            raise ValueError(f"Chain '{chain_id}' has no multicall address")
        if chain.max_concurrency < 1:
            raise ValueError(f"Chain '{chain_id}' max_concurrency must be at least 1")

    for wallet in cfg.wallets:
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")
        unknown = [c for c in wallet.chains if c not in cfg.chains]
        if unknown:
            raise ValueError(f"Wallet '{wallet.label}' references unknown chain '{unknown[0]}'")
