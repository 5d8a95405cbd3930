"""Token catalog protocol: static token metadata lookups."""
from typing import Protocol

from ..models import TokenData


class TokenCatalog(Protocol):
    """Abstract interface for tracked token metadata."""

    def tokens(self, chain: str) -> tuple[TokenData, ...]: ...

    def lookup(self, chain: str, address: str) -> TokenData | None: ...

    def lookup_logo_by_symbol(self, chain: str, symbol: str) -> str: ...
