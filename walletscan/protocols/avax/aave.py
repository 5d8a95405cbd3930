"""Aave on Avalanche: lending, borrowing and unclaimed incentive balances."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import NamedTuple

from ...chains.evm.abi import AbiMethod, build_abi
from ...models import HoldingRecord, LogicalCall
from ...query.batch import MulticallBatcher
from ...query.executor import QueryExecutor
from ...services.normalizer import TokenNormalizer

logger = logging.getLogger(__name__)

CHAIN = "avax"
PROJECT = "aave"

INCENTIVES = "0x01D83Fe6A10D2f2B7AF17034343746188272cAc9"
ADDRESS_PROVIDER_V3 = "0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb"
UI_DATA_PROVIDER_V3 = "0xdBbFaFC45983B4659E368a3025b81f69Ab6E5093"
DATA_PROVIDER_V3 = "0x69FA688f1Dc47d4B5d8029D5a35FB7a548310654"
INCENTIVES_V3 = "0x929EC64c34a17401F460460D4B9390518E5B473e"
WAVAX = "0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7"

RAY_PERCENT = 10**25


class UserReserveData(NamedTuple):
    current_a_token_balance: int
    current_stable_debt: int
    current_variable_debt: int
    principal_stable_debt: int
    scaled_variable_debt: int
    stable_borrow_rate: int
    liquidity_rate: int
    stable_rate_last_updated: int
    usage_as_collateral_enabled: bool


class ReserveData(NamedTuple):
    unbacked: int
    accrued_to_treasury_scaled: int
    total_a_token: int
    total_stable_debt: int
    total_variable_debt: int
    liquidity_rate: int
    variable_borrow_rate: int
    stable_borrow_rate: int
    average_stable_borrow_rate: int
    liquidity_index: int
    variable_borrow_index: int
    last_update_timestamp: int


class ReserveTokens(NamedTuple):
    a_token: str
    stable_debt_token: str
    variable_debt_token: str


INCENTIVES_ABI = build_abi(
    AbiMethod("getUserUnclaimedRewards", ("address",), ("uint256",)),
    AbiMethod("getUserRewards", ("address[]", "address", "address"), ("uint256",)),
)

UI_DATA_PROVIDER_ABI = build_abi(
    AbiMethod("getReservesList", ("address",), ("address[]",)),
)

DATA_PROVIDER_ABI = build_abi(
    AbiMethod(
        "getUserReserveData",
        ("address", "address"),
        ("uint256",) * 7 + ("uint40", "bool"),
        UserReserveData,
    ),
    AbiMethod(
        "getReserveData",
        ("address",),
        ("uint256",) * 11 + ("uint40",),
        ReserveData,
    ),
    AbiMethod(
        "getReserveTokensAddresses",
        ("address",),
        ("address", "address", "address"),
        ReserveTokens,
    ),
)


class AaveAdapter:
    """Aave V2 incentives and V3 market positions on Avalanche."""

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
            balance.extend(await self.get_incentives(wallet))
            balance.extend(await self.get_market_balances_v3(wallet))
        except Exception as e:
            logger.error("Error fetching %s balances on %s: %s", PROJECT, CHAIN.upper(), e)
        return balance

    async def get_incentives(self, wallet: str) -> list[HoldingRecord]:
        """Unclaimed V2 WAVAX rewards."""
        rewards = await self._executor.query(
            CHAIN, INCENTIVES, INCENTIVES_ABI, "getUserUnclaimedRewards", [wallet]
        )
        if rewards:
            token = await self._normalizer.build_fungible_holding(
                CHAIN, PROJECT, "unclaimed", WAVAX, rewards, wallet
            )
            return [token]
        return []

    async def get_market_balances_v3(self, wallet: str) -> list[HoldingRecord]:
        balances: list[HoldingRecord] = []
        assets: list[str] = await self._executor.query(
            CHAIN, UI_DATA_PROVIDER_V3, UI_DATA_PROVIDER_ABI, "getReservesList",
            [ADDRESS_PROVIDER_V3],
        ) or []

        calls = [
            LogicalCall(DATA_PROVIDER_V3, "getUserReserveData", (asset, wallet), asset)
            for asset in assets
        ]
        user_data = await self._batcher.many_methods_one_contract(
            CHAIN, DATA_PROVIDER_V3, DATA_PROVIDER_ABI, calls
        )

        assets_with_balance: list[str] = []

        async def market(asset: str, data: UserReserveData) -> list[HoldingRecord]:
            found: list[HoldingRecord] = []

            # Lending
            if data.current_a_token_balance > 0:
                token = await self._normalizer.build_fungible_holding(
                    CHAIN, PROJECT, "lent", asset, data.current_a_token_balance, wallet
                )
                found.append(replace(token, info={"apy": data.liquidity_rate / RAY_PERCENT}))

            # Stable borrowing
            if data.current_stable_debt > 0:
                debt = await self._normalizer.build_debt_holding(
                    CHAIN, PROJECT, asset, data.current_stable_debt, wallet
                )
                found.append(replace(debt, info={"apy": data.stable_borrow_rate / RAY_PERCENT}))

            # Variable borrowing
            if data.current_variable_debt > 0:
                debt = await self._normalizer.build_debt_holding(
                    CHAIN, PROJECT, asset, data.current_variable_debt, wallet
                )
                reserve: ReserveData = await self._executor.query(
                    CHAIN, DATA_PROVIDER_V3, DATA_PROVIDER_ABI, "getReserveData", [asset]
                )
                found.append(
                    replace(debt, info={"apy": reserve.variable_borrow_rate / RAY_PERCENT})
                )

            if found:
                assets_with_balance.append(asset)
            return found

        # Missing keys are markets whose user data could not be read.
        results = await asyncio.gather(
            *(market(asset, user_data[asset]) for asset in assets if asset in user_data)
        )
        for found in results:
            balances.extend(found)

        balances.extend(await self.get_incentives_v3(assets_with_balance, wallet))
        return balances

    async def get_incentives_v3(self, assets: list[str], wallet: str) -> list[HoldingRecord]:
        """Unclaimed V3 WAVAX rewards across the markets the wallet uses."""
        if not assets:
            return []

        reserve_tokens = await asyncio.gather(
            *(
                self._executor.query(
                    CHAIN, DATA_PROVIDER_V3, DATA_PROVIDER_ABI,
                    "getReserveTokensAddresses", [asset],
                )
                for asset in assets
            )
        )
        tokens: list[str] = []
        for ib_tokens in reserve_tokens:
            tokens.append(ib_tokens.a_token)
            tokens.append(ib_tokens.variable_debt_token)

        rewards = await self._executor.query(
            CHAIN, INCENTIVES_V3, INCENTIVES_ABI, "getUserRewards", [tokens, wallet, WAVAX]
        )
        if rewards:
            token = await self._normalizer.build_fungible_holding(
                CHAIN, PROJECT, "unclaimed", WAVAX, rewards, wallet
            )
            return [token]
        return []
