"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.stock_store import IStockStore, OpenBoxChange

__all__ = [
    # Storage interfaces
    "IStockStore",
    "OpenBoxChange",
]
