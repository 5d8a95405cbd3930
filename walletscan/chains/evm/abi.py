"""ABI method descriptors: calldata encoding and typed result decoding."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, NamedTuple

from eth_abi import decode, encode
from eth_utils import keccak

Abi = dict[str, "AbiMethod"]


@dataclass(frozen=True)
class AbiMethod:
    """A single view method: name, input types, output types.

    When ``record`` is set, decoded outputs are mapped into it (usually a
    ``NamedTuple``) instead of being returned as a bare tuple.
    """

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    record: Callable[..., Any] | None = None

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]

    def encode_call(self, args: tuple[Any, ...] | list[Any] = ()) -> bytes:
        if len(args) != len(self.inputs):
            raise ValueError(
                f"{self.signature} expects {len(self.inputs)} args, got {len(args)}"
            )
        return self.selector + encode(list(self.inputs), list(args))

    def decode_values(self, data: bytes) -> tuple[Any, ...]:
        """Decode return data into a tuple (or the typed record)."""
        values = decode(list(self.outputs), data)
        if self.record is not None:
            return self.record(*values)
        return tuple(values)

    def decode_result(self, data: bytes) -> Any:
        """Decode return data the way a single query hands it back.

        Single-output methods without a record are unwrapped to the bare value.
        """
        values = self.decode_values(data)
        if self.record is None and len(self.outputs) == 1:
            return values[0]
        return values


def build_abi(*methods: AbiMethod) -> Abi:
    """Index a set of methods by name."""
    return {m.name: m for m in methods}


def merge_abis(*abis: Abi) -> Abi:
    merged: Abi = {}
    for abi in abis:
        merged.update(abi)
    return merged


def get_method(abi: Abi, name: str) -> AbiMethod:
    try:
        return abi[name]
    except KeyError:
        raise ValueError(f"Method '{name}' not found in ABI") from None


# ---------------------------------------------------------------------------
# Typed result records
# ---------------------------------------------------------------------------


class Reserves(NamedTuple):
    reserve0: int
    reserve1: int
    block_timestamp_last: int


class TryAggregateResult(NamedTuple):
    success: bool
    return_data: bytes


# ---------------------------------------------------------------------------
# Shared ABIs
# ---------------------------------------------------------------------------

MIN_ABI: Abi = build_abi(
    AbiMethod("symbol", (), ("string",)),
    AbiMethod("decimals", (), ("uint8",)),
    AbiMethod("balanceOf", ("address",), ("uint256",)),
    AbiMethod("totalSupply", (), ("uint256",)),
)

LP_ABI: Abi = merge_abis(
    MIN_ABI,
    build_abi(
        AbiMethod("getReserves", (), ("uint112", "uint112", "uint32"), Reserves),
        AbiMethod("token0", (), ("address",)),
        AbiMethod("token1", (), ("address",)),
    ),
)

TRY_AGGREGATE = AbiMethod(
    "tryAggregate",
    ("bool", "(address,bytes)[]"),
    ("(bool,bytes)[]",),
)
