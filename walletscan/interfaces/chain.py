"""Chain client protocol: single-endpoint EVM RPC abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for EVM JSON-RPC interactions."""

    endpoints: list[str]

    async def rpc_call(self, endpoint: str, method: str, params: list[Any]) -> Any: ...

    async def eth_call(self, endpoint: str, to: str, data: bytes) -> bytes: ...

    async def get_balance(self, endpoint: str, wallet: str) -> int: ...
