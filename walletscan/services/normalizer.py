"""Token normalization: raw on-chain integers into typed, priced holdings."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..chains.evm.abi import LP_ABI, MIN_ABI
from ..config import AppConfig
from ..constants import DEFAULT_DECIMALS, NATIVE_ADDRESS, native_symbol
from ..errors import ChainQueryError
from ..interfaces.catalog import TokenCatalog
from ..interfaces.price_oracle import PriceOracle
from ..models import (
    DebtHolding,
    DerivativeHolding,
    FungibleHolding,
    LPHolding,
    LogicalCall,
    NativeHolding,
    PricedUnderlying,
    TokenData,
)
from ..query.batch import MulticallBatcher

logger = logging.getLogger(__name__)

_TOKEN_CALLS = (
    LogicalCall("", "symbol", (), "symbol"),
    LogicalCall("", "decimals", (), "decimals"),
)

_LP_CALLS = (
    LogicalCall("", "symbol", (), "symbol"),
    LogicalCall("", "decimals", (), "decimals"),
    LogicalCall("", "getReserves", (), "reserves"),
    LogicalCall("", "totalSupply", (), "totalSupply"),
    LogicalCall("", "token0", (), "token0"),
    LogicalCall("", "token1", (), "token1"),
)


@dataclass(frozen=True)
class TokenMetadata:
    symbol: str
    decimals: int
    logo: str


def normalize_balance(raw_balance: int, decimals: int) -> float:
    """Raw integer amount divided by 10^decimals."""
    return int(raw_balance) / (10**decimals)


def lp_share(reserve: int, holder_balance: int, total_supply: int, decimals: int) -> float:
    """Holder's normalized share of one pool reserve.

    share = reserve * (holder_balance / total_supply), computed with a single
    rounding step.
    """
    if total_supply <= 0:
        return 0.0
    return (int(reserve) * int(holder_balance)) / (int(total_supply) * 10**decimals)


class TokenNormalizer:
    """Build holding records from raw balances.

    Metadata comes from the tracked token catalog when available and from a
    symbol/decimals multicall otherwise. A failed price lookup leaves
    ``price`` as None.
    """

    def __init__(
        self,
        config: AppConfig,
        batcher: MulticallBatcher,
        catalog: TokenCatalog,
        oracle: PriceOracle,
    ) -> None:
        self._config = config
        self._batcher = batcher
        self._catalog = catalog
        self._oracle = oracle

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def native_symbol(self, chain: str) -> str:
        chain_cfg = self._config.chains.get(chain)
        if chain_cfg is not None and chain_cfg.native_symbol:
            return chain_cfg.native_symbol
        return native_symbol(chain)

    async def _price(self, chain: str, address: str, decimals: int) -> float | None:
        try:
            return await self._oracle.get_price(chain, address, decimals)
        except Exception as e:
            logger.warning("Price lookup failed for %s on %s: %s", address, chain, e)
            return None

    async def _query_metadata(self, chain: str, address: str) -> TokenMetadata:
        results = await self._batcher.many_methods_one_contract(
            chain, address, MIN_ABI, _TOKEN_CALLS
        )
        symbol = results["symbol"][0] if "symbol" in results else ""
        decimals = int(results["decimals"][0]) if "decimals" in results else DEFAULT_DECIMALS
        return TokenMetadata(symbol, decimals, self._catalog.lookup_logo_by_symbol(chain, symbol))

    async def resolve_metadata(self, chain: str, address: str) -> TokenMetadata:
        """Native table, then catalog, then one on-chain multicall."""
        if address.lower() == NATIVE_ADDRESS:
            symbol = self.native_symbol(chain)
            return TokenMetadata(
                symbol, DEFAULT_DECIMALS, self._catalog.lookup_logo_by_symbol(chain, symbol)
            )
        token = self._catalog.lookup(chain, address)
        if token is not None:
            return TokenMetadata(token.symbol, token.decimals, token.logo)
        return await self._query_metadata(chain, address)

    # ------------------------------------------------------------------
    # Holding builders
    # ------------------------------------------------------------------

    async def build_native_holding(
        self, chain: str, raw_balance: int, owner: str
    ) -> NativeHolding:
        symbol = self.native_symbol(chain)
        balance = normalize_balance(raw_balance, DEFAULT_DECIMALS)
        price = await self._price(chain, NATIVE_ADDRESS, DEFAULT_DECIMALS)
        return NativeHolding(
            chain=chain,
            location="wallet",
            status="none",
            owner=owner,
            symbol=symbol,
            address=NATIVE_ADDRESS,
            balance=balance,
            price=price,
            logo=self._catalog.lookup_logo_by_symbol(chain, symbol),
        )

    async def build_fungible_holding(
        self,
        chain: str,
        location: str,
        status: str,
        address: str,
        raw_balance: int,
        owner: str,
    ) -> FungibleHolding:
        meta = await self.resolve_metadata(chain, address)
        price = await self._price(chain, address, meta.decimals)
        return FungibleHolding(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=meta.symbol,
            address=address,
            balance=normalize_balance(raw_balance, meta.decimals),
            price=price,
            logo=meta.logo,
        )

    async def build_tracked_holding(
        self,
        chain: str,
        location: str,
        status: str,
        token: TokenData,
        raw_balance: int,
        owner: str,
    ) -> FungibleHolding:
        """Fungible holding for a catalog entry already in hand."""
        price = await self._price(chain, token.address, token.decimals)
        return FungibleHolding(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=token.symbol,
            address=token.address,
            balance=normalize_balance(raw_balance, token.decimals),
            price=price,
            logo=token.logo,
        )

    async def build_debt_holding(
        self,
        chain: str,
        location: str,
        address: str,
        raw_balance: int,
        owner: str,
    ) -> DebtHolding:
        meta = await self.resolve_metadata(chain, address)
        price = await self._price(chain, address, meta.decimals)
        return DebtHolding(
            chain=chain,
            location=location,
            status="borrowed",
            owner=owner,
            symbol=meta.symbol,
            address=address,
            balance=normalize_balance(raw_balance, meta.decimals),
            price=price,
            logo=meta.logo,
        )

    async def build_lp_holding(
        self,
        chain: str,
        location: str,
        status: str,
        address: str,
        raw_balance: int,
        owner: str,
    ) -> LPHolding:
        results = await self._batcher.many_methods_one_contract(
            chain, address, LP_ABI, _LP_CALLS
        )
        missing = [k for k in ("reserves", "totalSupply", "token0", "token1") if k not in results]
        if missing:
            raise ChainQueryError(chain, "/".join(missing), (), address)

        symbol = results["symbol"][0] if "symbol" in results else ""
        decimals = int(results["decimals"][0]) if "decimals" in results else DEFAULT_DECIMALS
        reserves = results["reserves"]
        total_supply = int(results["totalSupply"][0])
        address0: str = results["token0"][0]
        address1: str = results["token1"][0]

        resolved = await asyncio.gather(
            self.resolve_metadata(chain, address0),
            self.resolve_metadata(chain, address1),
            return_exceptions=True,
        )
        for outcome in resolved:
            if isinstance(outcome, BaseException):
                raise outcome
        meta0, meta1 = resolved
        price0, price1 = await asyncio.gather(
            self._price(chain, address0, meta0.decimals),
            self._price(chain, address1, meta1.decimals),
        )

        token0 = PricedUnderlying(
            symbol=meta0.symbol,
            address=address0,
            balance=lp_share(reserves[0], raw_balance, total_supply, meta0.decimals),
            price=price0,
            logo=self._catalog.lookup_logo_by_symbol(chain, meta0.symbol),
        )
        token1 = PricedUnderlying(
            symbol=meta1.symbol,
            address=address1,
            balance=lp_share(reserves[1], raw_balance, total_supply, meta1.decimals),
            price=price1,
            logo=self._catalog.lookup_logo_by_symbol(chain, meta1.symbol),
        )

        return LPHolding(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=symbol,
            address=address,
            balance=normalize_balance(raw_balance, decimals),
            token0=token0,
            token1=token1,
            logo=self._catalog.lookup_logo_by_symbol(chain, symbol),
        )

    async def build_derivative_holding(
        self,
        chain: str,
        location: str,
        status: str,
        address: str,
        raw_balance: int,
        owner: str,
        underlying_address: str,
        underlying_raw_balance: int,
    ) -> DerivativeHolding:
        """Derivative token plus its redeemable underlying.

        ``underlying_raw_balance`` is already converted by the caller; the
        exchange ratio is protocol specific.
        """
        own = await self._query_metadata(chain, address)
        underlying_meta = await self.resolve_metadata(chain, underlying_address)
        underlying_price = await self._price(
            chain, underlying_address, underlying_meta.decimals
        )

        underlying = PricedUnderlying(
            symbol=underlying_meta.symbol,
            address=underlying_address,
            balance=normalize_balance(underlying_raw_balance, underlying_meta.decimals),
            price=underlying_price,
            logo=underlying_meta.logo,
        )

        return DerivativeHolding(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=own.symbol,
            address=address,
            balance=normalize_balance(raw_balance, own.decimals),
            logo=own.logo,
            underlying=underlying,
        )
