"""ENS name resolution on Ethereum mainnet."""
from __future__ import annotations

import logging

from eth_utils import keccak, to_checksum_address

from .chains.evm.abi import AbiMethod, build_abi
from .constants import ZERO_ADDRESS
from .query.executor import QueryExecutor

logger = logging.getLogger(__name__)

ENS_CHAIN = "eth"
ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"

REGISTRY_ABI = build_abi(AbiMethod("resolver", ("bytes32",), ("address",)))
RESOLVER_ABI = build_abi(
    AbiMethod("addr", ("bytes32",), ("address",)),
    AbiMethod("name", ("bytes32",), ("string",)),
)


def namehash(name: str) -> bytes:
    """EIP-137 namehash of a (lower-cased) domain name."""
    node = b"\x00" * 32
    if name:
        for label in reversed(name.lower().split(".")):
            node = keccak(node + keccak(text=label))
    return node


async def _resolver(executor: QueryExecutor, node: bytes) -> str | None:
    resolver = await executor.query(ENS_CHAIN, ENS_REGISTRY, REGISTRY_ABI, "resolver", [node])
    if not resolver or resolver == ZERO_ADDRESS:
        return None
    return resolver


async def resolve_ens(executor: QueryExecutor, name: str) -> str | None:
    """Resolve an ENS name into an address, or None."""
    node = namehash(name)
    resolver = await _resolver(executor, node)
    if resolver is None:
        return None
    address = await executor.query(ENS_CHAIN, resolver, RESOLVER_ABI, "addr", [node])
    if not address or address == ZERO_ADDRESS:
        return None
    return address


async def lookup_ens(executor: QueryExecutor, address: str) -> str | None:
    """Reverse-resolve an address into its primary ENS name, or None.

    The name is only returned if it forward-resolves back to ``address``.
    """
    node = namehash(f"{address.lower().removeprefix('0x')}.addr.reverse")
    resolver = await _resolver(executor, node)
    if resolver is None:
        return None
    name = await executor.query(ENS_CHAIN, resolver, RESOLVER_ABI, "name", [node])
    if not name:
        return None
    forward = await resolve_ens(executor, name)
    if forward is None or to_checksum_address(forward) != to_checksum_address(address):
        logger.debug("Reverse record %s for %s does not resolve back", name, address)
        return None
    return name
