from .abi import LP_ABI, MIN_ABI, Abi, AbiMethod, build_abi, merge_abis
from .client import EvmClient

__all__ = ["Abi", "AbiMethod", "EvmClient", "LP_ABI", "MIN_ABI", "build_abi", "merge_abis"]
