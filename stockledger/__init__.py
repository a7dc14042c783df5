"""Dual-unit stock ledger and sale allocation service."""

__version__ = "1.0.0"
