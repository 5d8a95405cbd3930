"""Exception types raised by the query engine."""
from __future__ import annotations

from typing import Any


class WalletScanError(Exception):
    """Base class for all walletscan errors."""

    def __init__(self, chain: str, message: str, cause: BaseException | None = None) -> None:
        self.chain = chain
        self.cause = cause
        text = f"[{chain.upper()}] {message}"
        if cause is not None:
            text += f" ({cause})"
        super().__init__(text)


class TransientEndpointError(WalletScanError):
    """A single endpoint failed; the executor moves on to the next one."""

    def __init__(self, chain: str, endpoint: str, cause: BaseException | None = None) -> None:
        self.endpoint = endpoint
        super().__init__(chain, f"Endpoint {endpoint} failed", cause)


class ExhaustedRetriesError(WalletScanError):
    """Every endpoint failed on every retry pass."""


class ChainQueryError(ExhaustedRetriesError):
    """A contract call could not be completed on any endpoint."""

    def __init__(
        self,
        chain: str,
        method: str,
        args: tuple[Any, ...] | list[Any],
        address: str,
        cause: BaseException | None = None,
    ) -> None:
        self.method = method
        self.args_ = tuple(args)
        self.address = address
        call = ", ".join(str(a) for a in self.args_)
        super().__init__(chain, f"Querying {method}({call}) on {address}", cause)


class BatchQueryError(WalletScanError):
    """The batching-helper invocation itself failed."""

    def __init__(self, chain: str, description: str = "Invalid multicall query", cause: BaseException | None = None) -> None:
        self.description = description
        super().__init__(chain, description, cause)


class UnknownProjectError(WalletScanError):
    """No adapter is registered for the requested project."""

    def __init__(self, chain: str, project: str) -> None:
        self.project = project
        super().__init__(chain, f"Unknown project: {project}")
