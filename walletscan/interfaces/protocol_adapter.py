"""Protocol adapter: per-project holdings discovery."""
from typing import Protocol

from ..models import HoldingRecord


class ProtocolAdapter(Protocol):
    """Abstract interface for discovering a wallet's holdings in one project."""

    @property
    def chain(self) -> str: ...

    @property
    def project(self) -> str: ...

    async def discover_holdings(self, wallet: str) -> list[HoldingRecord]: ...
