from .cache import PriceCache
from .pyth import PythOracle

__all__ = ["PriceCache", "PythOracle"]
