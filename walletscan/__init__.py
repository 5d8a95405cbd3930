"""Multi-chain wallet holdings scanner."""

__version__ = "0.1.0"
