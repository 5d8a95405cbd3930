"""Avalanche protocol adapters."""
