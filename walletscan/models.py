"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

TokenStatus = Literal["none", "staked", "liquidity", "lent", "borrowed", "unclaimed"]


@dataclass(frozen=True)
class LogicalCall:
    """One contract method call inside a batch."""

    contract: str
    method: str
    args: tuple[Any, ...] = ()
    reference: str = ""


@dataclass(frozen=True)
class CallResult:
    """Outcome of a single call inside a batch."""

    reference: str
    success: bool
    values: tuple[Any, ...] | None = None


@dataclass(frozen=True)
class TokenData:
    """Tracked token catalog entry."""

    symbol: str
    address: str
    decimals: int
    logo: str


@dataclass(frozen=True)
class PricedUnderlying:
    """Underlying asset of an LP or derivative holding."""

    symbol: str
    address: str
    balance: float
    price: float | None
    logo: str


@dataclass(frozen=True)
class _Holding:
    chain: str
    location: str
    status: str
    owner: str
    symbol: str
    address: str
    balance: float


@dataclass(frozen=True)
class NativeHolding(_Holding):
    price: float | None
    logo: str
    info: dict[str, Any] = field(default_factory=dict)
    kind: str = field(default="nativeToken", init=False)


@dataclass(frozen=True)
class FungibleHolding(_Holding):
    price: float | None
    logo: str
    info: dict[str, Any] = field(default_factory=dict)
    kind: str = field(default="token", init=False)


@dataclass(frozen=True)
class LPHolding(_Holding):
    token0: PricedUnderlying
    token1: PricedUnderlying
    logo: str
    info: dict[str, Any] = field(default_factory=dict)
    kind: str = field(default="lpToken", init=False)


@dataclass(frozen=True)
class DebtHolding(_Holding):
    price: float | None
    logo: str
    info: dict[str, Any] = field(default_factory=dict)
    kind: str = field(default="debt", init=False)


@dataclass(frozen=True)
class DerivativeHolding(_Holding):
    logo: str
    underlying: PricedUnderlying
    info: dict[str, Any] = field(default_factory=dict)
    kind: str = field(default="xToken", init=False)


HoldingRecord = Union[NativeHolding, FungibleHolding, LPHolding, DebtHolding, DerivativeHolding]
