"""Shared constants: sentinel addresses, defaults, known-broken contracts."""
from __future__ import annotations

NATIVE_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_TOKEN_LOGO = (
    "https://cdn.jsdelivr.net/gh/atomiclabs/cryptocurrency-icons@"
    "d5c68edec1f5eaec59ac77ff2b48144679cebca1/32/icon/generic.png"
)
DEFAULT_DECIMALS = 18
MAX_QUERY_RETRIES = 3

# Contracts whose calls are expected to fail permanently.
IGNORED_ERRORS: tuple[tuple[str, str], ...] = (
    ("poly", "0x8aaa5e259f74c8114e0a471d9f2adfc66bfe09ed"),  # QuickSwap Registry
    ("poly", "0x9dd12421c637689c3fc6e661c9e2f02c2f61b3eb"),  # QuickSwap Dual Rewards Registry
)

# Native currency symbols that differ from the upper-cased chain id.
NATIVE_SYMBOLS: dict[str, str] = {
    "bsc": "BNB",
    "poly": "MATIC",
    "cronos": "CRO",
    "op": "ETH",
    "arb": "ETH",
}


def native_symbol(chain: str) -> str:
    """Return the native currency symbol for a chain id."""
    return NATIVE_SYMBOLS.get(chain, chain.upper())
