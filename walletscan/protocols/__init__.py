"""Static registry of protocol adapters keyed by (chain, project)."""
from __future__ import annotations

from typing import Callable

from ..interfaces.protocol_adapter import ProtocolAdapter
from ..query.batch import MulticallBatcher
from ..query.executor import QueryExecutor
from ..services.normalizer import TokenNormalizer
from .avax.aave import AaveAdapter
from .avax.axial import AxialAdapter

AdapterFactory = Callable[[QueryExecutor, MulticallBatcher, TokenNormalizer], ProtocolAdapter]

# Registry of protocol adapter factories keyed by (chain, project).
PROTOCOL_FACTORIES: dict[tuple[str, str], AdapterFactory] = {
    ("avax", "aave"): AaveAdapter,
    ("avax", "axial"): AxialAdapter,
}


def build_registry(
    executor: QueryExecutor,
    batcher: MulticallBatcher,
    normalizer: TokenNormalizer,
    chains: set[str] | None = None,
) -> dict[tuple[str, str], ProtocolAdapter]:
    """Instantiate every adapter, optionally limited to configured chains."""
    return {
        key: factory(executor, batcher, normalizer)
        for key, factory in PROTOCOL_FACTORIES.items()
        if chains is None or key[0] in chains
    }


def list_projects() -> dict[str, list[str]]:
    """Supported project names per chain."""
    projects: dict[str, list[str]] = {}
    for chain, project in PROTOCOL_FACTORIES:
        projects.setdefault(chain, []).append(project)
    return projects
