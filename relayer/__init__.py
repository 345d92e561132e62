"""Recurring on-chain subscription charge relayer."""

__version__ = "0.1.0"
