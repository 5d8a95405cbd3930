"""EVM JSON-RPC client: one stateless request per call, per-chain rate limit."""
from __future__ import annotations

import asyncio
import itertools
import logging
import ssl
from typing import Any

import aiohttp
import certifi
from eth_utils import to_bytes, to_checksum_address

from ...config import ChainConfig

logger = logging.getLogger(__name__)


class EvmClient:
    """JSON-RPC transport for a single EVM chain.

    Endpoint selection and retries belong to the caller; every method here
    targets exactly one endpoint. In-flight requests are capped by
    ``max_concurrency`` to avoid provider throttling.
    """

    def __init__(self, chain: str, config: ChainConfig) -> None:
        self.chain = chain
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self._limiter = asyncio.Semaphore(config.max_concurrency)
        self._ids = itertools.count(1)

    async def rpc_call(self, endpoint: str, method: str, params: list[Any]) -> Any:
        """POST one JSON-RPC request; raise on transport or RPC error."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        async with self._limiter:
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    endpoint,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    result = await response.json(content_type=None)

        if not isinstance(result, dict):
            raise RuntimeError(f"Malformed RPC response from {endpoint}")
        if "error" in result:
            raise RuntimeError(f"RPC Error: {result['error']}")
        if "result" not in result:
            raise RuntimeError(f"RPC response from {endpoint} has no result")
        return result["result"]

    async def eth_call(self, endpoint: str, to: str, data: bytes) -> bytes:
        """Execute a read-only call against the latest block."""
        result = await self.rpc_call(
            endpoint,
            "eth_call",
            [{"to": to_checksum_address(to), "data": "0x" + data.hex()}, "latest"],
        )
        raw = to_bytes(hexstr=result)
        if not raw:
            raise RuntimeError(f"Empty eth_call result from {to}")
        return raw

    async def get_balance(self, endpoint: str, wallet: str) -> int:
        """Native currency balance in wei."""
        result = await self.rpc_call(
            endpoint, "eth_getBalance", [to_checksum_address(wallet), "latest"]
        )
        return int(result, 16)
