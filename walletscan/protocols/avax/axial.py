"""Axial on Avalanche: MasterChef staked pool balances and pending rewards."""
from __future__ import annotations

import asyncio
import logging
from typing import NamedTuple

from ...chains.evm.abi import MIN_ABI, AbiMethod, build_abi
from ...models import HoldingRecord, LogicalCall
from ...query.batch import MulticallBatcher
from ...query.executor import QueryExecutor
from ...services.normalizer import TokenNormalizer

logger = logging.getLogger(__name__)

CHAIN = "avax"
PROJECT = "axial"

MASTER_CHEF = "0x958C0d0baA8F220846d3966742D4Fb5edc5493D3"
AXIAL_TOKEN = "0xcF8419A615c57511807236751c0AF38Db4ba3351"

# Symbols of plain two-token pair LPs staked in the MasterChef.
PAIR_LP_SYMBOLS = frozenset({"JLP", "PGL"})


class UserInfo(NamedTuple):
    amount: int
    reward_debt: int


class PoolInfo(NamedTuple):
    lp_token: str
    acc_axial_per_share: int
    last_reward_timestamp: int
    alloc_point: int
    rewarder: str


class PendingTokens(NamedTuple):
    pending_axial: int
    bonus_token_address: str
    bonus_token_symbol: str
    pending_bonus_token: int


MASTER_CHEF_ABI = build_abi(
    AbiMethod("poolLength", (), ("uint256",)),
    AbiMethod("userInfo", ("uint256", "address"), ("uint256", "uint256"), UserInfo),
    AbiMethod(
        "poolInfo",
        ("uint256",),
        ("address", "uint256", "uint256", "uint256", "address"),
        PoolInfo,
    ),
    AbiMethod(
        "pendingTokens",
        ("uint256", "address"),
        ("uint256", "address", "string", "uint256"),
        PendingTokens,
    ),
)


class AxialAdapter:
    """Staked Axial MasterChef pools."""

    def __init__(
        self,
        executor: QueryExecutor,
        batcher: MulticallBatcher,
        normalizer: TokenNormalizer,
    ) -> None:
        self._executor = executor
        self._batcher = batcher
        self._normalizer = normalizer

    @property
    def chain(self) -> str:
        return CHAIN

    @property
    def project(self) -> str:
        return PROJECT

    async def discover_holdings(self, wallet: str) -> list[HoldingRecord]:
        balance: list[HoldingRecord] = []
        try:
            balance.extend(await self.get_pool_balances(wallet))
        except Exception as e:
            logger.error("Error fetching %s balances on %s: %s", PROJECT, CHAIN.upper(), e)
        return balance

    async def get_pool_balances(self, wallet: str) -> list[HoldingRecord]:
        pool_count = int(
            await self._executor.query(CHAIN, MASTER_CHEF, MASTER_CHEF_ABI, "poolLength", [])
        )
        calls = [
            LogicalCall(MASTER_CHEF, "userInfo", (pool_id, wallet), str(pool_id))
            for pool_id in range(pool_count)
        ]
        user_info = await self._batcher.many_methods_one_contract(
            CHAIN, MASTER_CHEF, MASTER_CHEF_ABI, calls
        )

        staked = [
            (pool_id, info.amount)
            for pool_id in range(pool_count)
            if (info := user_info.get(str(pool_id))) is not None and info.amount > 0
        ]

        results = await asyncio.gather(
            *(self._pool_balance(pool_id, amount, wallet) for pool_id, amount in staked)
        )
        balances: list[HoldingRecord] = []
        for found in results:
            balances.extend(found)
        return balances

    async def _pool_balance(self, pool_id: int, amount: int, wallet: str) -> list[HoldingRecord]:
        found: list[HoldingRecord] = []
        try:
            pool: PoolInfo = await self._executor.query(
                CHAIN, MASTER_CHEF, MASTER_CHEF_ABI, "poolInfo", [pool_id]
            )
            symbol = await self._executor.query(CHAIN, pool.lp_token, MIN_ABI, "symbol", [])

            # Standard LPs
            if symbol in PAIR_LP_SYMBOLS:
                found.append(
                    await self._normalizer.build_lp_holding(
                        CHAIN, PROJECT, "staked", pool.lp_token, amount, wallet
                    )
                )

            # Axial stableswap LPs
            else:
                found.append(
                    await self._normalizer.build_fungible_holding(
                        CHAIN, PROJECT, "staked", pool.lp_token, amount, wallet
                    )
                )

            # Pending rewards
            rewards: PendingTokens = await self._executor.query(
                CHAIN, MASTER_CHEF, MASTER_CHEF_ABI, "pendingTokens", [pool_id, wallet]
            )
            if rewards.pending_axial > 0:
                found.append(
                    await self._normalizer.build_fungible_holding(
                        CHAIN, PROJECT, "unclaimed", AXIAL_TOKEN, rewards.pending_axial, wallet
                    )
                )
            if rewards.pending_bonus_token > 0:
                found.append(
                    await self._normalizer.build_fungible_holding(
                        CHAIN, PROJECT, "unclaimed", rewards.bonus_token_address,
                        rewards.pending_bonus_token, wallet,
                    )
                )
        except Exception as e:
            logger.error("Error fetching %s pool %d on %s: %s", PROJECT, pool_id, CHAIN.upper(), e)
            return []
        return found
