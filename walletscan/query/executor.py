"""Failover query executor: one logical contract call, retried across endpoints."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from ..chains.evm.abi import Abi, get_method
from ..chains.evm.client import EvmClient
from ..config import AppConfig
from ..errors import ChainQueryError, ExhaustedRetriesError, TransientEndpointError
from ..interfaces.chain import ChainClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryState:
    """Endpoint cursor and pass counter owned by a single call in progress."""

    endpoint_index: int = 0
    passes: int = 0
    attempts: int = 0

    def advance(self, endpoint_count: int) -> None:
        self.endpoint_index += 1
        if self.endpoint_index >= endpoint_count:
            self.endpoint_index = 0
            self.passes += 1


class QueryExecutor:
    """Issue contract calls with sequential endpoint failover.

    Every attempt targets the endpoint at the cursor; a failure advances the
    cursor, and running off the end of the endpoint list counts one pass.
    Worst case is ``len(endpoints) * max_retries`` attempts.
    """

    def __init__(
        self,
        config: AppConfig,
        clients: dict[str, ChainClient] | None = None,
    ) -> None:
        self._config = config
        self._max_retries = config.query.max_retries
        self._ignored = {
            (chain, address.lower()) for chain, address in config.query.ignored_errors
        }
        if clients is None:
            clients = {
                name: EvmClient(name, chain_cfg)
                for name, chain_cfg in config.chains.items()
            }
        self._clients = clients

    @property
    def config(self) -> AppConfig:
        return self._config

    def client(self, chain: str) -> ChainClient:
        try:
            return self._clients[chain]
        except KeyError:
            raise ValueError(f"Unknown chain '{chain}'") from None

    def is_ignored(self, chain: str, address: str) -> bool:
        return (chain, address.lower()) in self._ignored

    async def _with_failover(
        self,
        chain: str,
        attempt: Callable[[ChainClient, str], Awaitable[T]],
    ) -> T:
        client = self.client(chain)
        endpoints = client.endpoints
        state = RetryState()
        last_error: BaseException | None = None

        while state.passes < self._max_retries:
            endpoint = endpoints[state.endpoint_index]
            state.attempts += 1
            try:
                return await attempt(client, endpoint)
            except Exception as e:
                logger.debug("%s", TransientEndpointError(chain, endpoint, e))
                last_error = e
                state.advance(len(endpoints))

        raise ExhaustedRetriesError(
            chain, f"All endpoints failed after {state.attempts} attempts", last_error
        )

    async def query(
        self,
        chain: str,
        address: str,
        abi: Abi,
        method: str,
        args: tuple[Any, ...] | list[Any] = (),
    ) -> Any:
        """Call ``method`` on ``address`` and return its decoded result.

        Returns None when the call keeps failing on a suppressed contract.
        Raises ChainQueryError otherwise.
        """
        abi_method = get_method(abi, method)
        data = abi_method.encode_call(args)

        async def attempt(client: ChainClient, endpoint: str) -> Any:
            raw = await client.eth_call(endpoint, address, data)
            return abi_method.decode_result(raw)

        try:
            return await self._with_failover(chain, attempt)
        except ExhaustedRetriesError as e:
            if self.is_ignored(chain, address):
                logger.debug(
                    "Ignoring failed %s on suppressed contract %s (%s)",
                    method, address, chain,
                )
                return None
            raise ChainQueryError(chain, method, args, address, e.cause) from e

    async def get_native_balance(self, chain: str, wallet: str) -> int | None:
        """Native balance in wei, or None if every endpoint failed."""

        async def attempt(client: ChainClient, endpoint: str) -> int:
            return await client.get_balance(endpoint, wallet)

        try:
            return await self._with_failover(chain, attempt)
        except ExhaustedRetriesError as e:
            logger.warning("Could not fetch native balance for %s: %s", wallet, e)
            return None
