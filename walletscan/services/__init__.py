"""Service modules"""
from .normalizer import TokenNormalizer
from .scanner import WalletScanner

__all__ = ["TokenNormalizer", "WalletScanner"]
