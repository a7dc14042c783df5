"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteStockStore,
    close_pool,
    get_connection,
    get_pool,
    get_stock_store,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteStockStore",
    "get_stock_store",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
