"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from stockledger.infrastructure.storage.sqlite.stock_store import SQLiteStockStore

# Type alias for convenience
StockStore = SQLiteStockStore

# Singleton instance
_stock_store: SQLiteStockStore | None = None


async def get_stock_store() -> SQLiteStockStore:
    """Get singleton stock store instance."""
    global _stock_store
    if _stock_store is None:
        _stock_store = SQLiteStockStore()
    return _stock_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteStockStore",
    "StockStore",
    # Factory functions
    "get_stock_store",
]
