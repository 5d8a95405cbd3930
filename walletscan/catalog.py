"""Tracked token catalog: static per-chain token metadata."""
from __future__ import annotations

from .config import AppConfig
from .constants import DEFAULT_TOKEN_LOGO
from .models import TokenData


class TrackedTokenCatalog:
    """Lookup of well-known tokens, keyed case-insensitively by address."""

    def __init__(self, config: AppConfig) -> None:
        self._tokens: dict[str, tuple[TokenData, ...]] = {}
        self._by_address: dict[str, dict[str, TokenData]] = {}
        self._logos: dict[str, dict[str, str]] = {}
        for chain, chain_cfg in config.chains.items():
            self._tokens[chain] = chain_cfg.tokens
            self._by_address[chain] = {t.address.lower(): t for t in chain_cfg.tokens}
            self._logos[chain] = dict(chain_cfg.logos)

    def tokens(self, chain: str) -> tuple[TokenData, ...]:
        return self._tokens.get(chain, ())

    def lookup(self, chain: str, address: str) -> TokenData | None:
        return self._by_address.get(chain, {}).get(address.lower())

    def lookup_logo_by_symbol(self, chain: str, symbol: str) -> str:
        """Tracked token logo, then the chain's logo table, then the generic logo."""
        for token in self.tokens(chain):
            if token.symbol == symbol:
                return token.logo
        return self._logos.get(chain, {}).get(symbol, DEFAULT_TOKEN_LOGO)
