"""Protocol interfaces for the wallet scanner."""
from .catalog import TokenCatalog
from .chain import ChainClient
from .price_oracle import PriceOracle
from .protocol_adapter import ProtocolAdapter

__all__ = ["ChainClient", "PriceOracle", "ProtocolAdapter", "TokenCatalog"]
