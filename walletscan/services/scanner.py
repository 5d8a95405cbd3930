"""Wallet scanning: wallet balances and project balances, fanned out per chain."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterable

from eth_utils import to_checksum_address

from ..chains.evm.abi import MIN_ABI
from ..errors import UnknownProjectError
from ..interfaces.catalog import TokenCatalog
from ..interfaces.protocol_adapter import ProtocolAdapter
from ..models import HoldingRecord
from ..query.batch import MulticallBatcher
from ..query.executor import QueryExecutor
from .normalizer import TokenNormalizer

logger = logging.getLogger(__name__)


class WalletScanner:
    """Collect every holding of a wallet across chains and projects."""

    def __init__(
        self,
        executor: QueryExecutor,
        batcher: MulticallBatcher,
        normalizer: TokenNormalizer,
        catalog: TokenCatalog,
        adapters: dict[tuple[str, str], ProtocolAdapter],
    ) -> None:
        self._executor = executor
        self._batcher = batcher
        self._normalizer = normalizer
        self._catalog = catalog
        self._adapters = adapters

    def projects(self, chain: str) -> list[str]:
        return [project for (c, project) in self._adapters if c == chain]

    async def get_wallet_balance(self, chain: str, wallet: str) -> list[HoldingRecord]:
        """Native balance plus every tracked token with a positive balance."""
        wallet = to_checksum_address(wallet)
        holdings: list[HoldingRecord] = []

        raw_native = await self._executor.get_native_balance(chain, wallet)
        if raw_native:
            holdings.append(await self._normalizer.build_native_holding(chain, raw_native, wallet))

        tokens = self._catalog.tokens(chain)
        if tokens:
            balances = await self._batcher.one_method_many_contracts(
                chain, [t.address for t in tokens], MIN_ABI, "balanceOf", [wallet]
            )
            held = [
                (token, int(balances[token.address][0]))
                for token in tokens
                if token.address in balances and int(balances[token.address][0]) > 0
            ]
            holdings.extend(
                await asyncio.gather(
                    *(
                        self._normalizer.build_tracked_holding(
                            chain, "wallet", "none", token, raw, wallet
                        )
                        for token, raw in held
                    )
                )
            )

        return holdings

    async def get_project_balance(
        self, chain: str, wallet: str, project: str
    ) -> list[HoldingRecord]:
        adapter = self._adapters.get((chain, project))
        if adapter is None:
            raise UnknownProjectError(chain, project)
        return await adapter.discover_holdings(to_checksum_address(wallet))

    async def _isolated(
        self, label: str, branch: Awaitable[list[HoldingRecord]]
    ) -> list[HoldingRecord]:
        try:
            return await branch
        except Exception as e:
            logger.error("Error fetching %s balances: %s", label, e)
            return []

    async def gather_branches(
        self, branches: Iterable[tuple[str, Awaitable[list[HoldingRecord]]]]
    ) -> list[HoldingRecord]:
        """Run branches concurrently; a failed branch contributes nothing."""
        results = await asyncio.gather(
            *(self._isolated(label, branch) for label, branch in branches)
        )
        holdings: list[HoldingRecord] = []
        for found in results:
            holdings.extend(found)
        return holdings

    async def get_all_balances(
        self, wallet: str, chains: Iterable[str] | None = None
    ) -> list[HoldingRecord]:
        """Wallet and project balances for every requested chain."""
        wallet = to_checksum_address(wallet)
        if chains is None:
            chains = self._executor.config.chains.keys()

        branches: list[tuple[str, Awaitable[list[HoldingRecord]]]] = []
        for chain in chains:
            branches.append(
                (f"{chain.upper()} wallet", self.get_wallet_balance(chain, wallet))
            )
            for project in self.projects(chain):
                branches.append(
                    (
                        f"{project} on {chain.upper()}",
                        self.get_project_balance(chain, wallet, project),
                    )
                )

        holdings = await self.gather_branches(branches)
        logger.info("Found %d holdings for %s", len(holdings), wallet)
        return holdings
