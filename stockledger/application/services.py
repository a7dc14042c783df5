"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from stockledger.core.services import (
    CriticalityThresholds,
    CriticalStockMonitor,
    ItemLockRegistry,
    PresentationCatalog,
    SaleEngine,
    StockLedger,
)

if TYPE_CHECKING:
    from stockledger.core.interfaces import IStockStore


# Singleton service instances
_stock_ledger: StockLedger | None = None
_sale_engine: SaleEngine | None = None
_presentation_catalog: PresentationCatalog | None = None
_critical_stock_monitor: CriticalStockMonitor | None = None
_item_locks: ItemLockRegistry | None = None


async def _default_stock_store() -> "IStockStore":
    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import get_stock_store

    return await get_stock_store()


def _get_item_locks() -> ItemLockRegistry:
    """Lock registry shared by every ledger built here."""
    global _item_locks
    if _item_locks is None:
        _item_locks = ItemLockRegistry()
    return _item_locks


async def get_stock_ledger(stock_store: "IStockStore | None" = None) -> StockLedger:
    """
    Get or create the StockLedger.

    Every ledger built here shares one per-item lock registry, so ledger
    records and sale commits on one item never interleave.

    Args:
        stock_store: Optional stock store override (returns a private ledger)

    Returns:
        Configured StockLedger
    """
    global _stock_ledger

    if _stock_ledger is not None and stock_store is None:
        return _stock_ledger

    ledger = StockLedger(
        stock_store=stock_store or await _default_stock_store(),
        locks=_get_item_locks(),
    )

    if stock_store is None:
        _stock_ledger = ledger

    return ledger


async def get_sale_engine(
    stock_store: "IStockStore | None" = None,
    ledger: StockLedger | None = None,
) -> SaleEngine:
    """
    Get or create the SaleEngine.

    Args:
        stock_store: Optional stock store override
        ledger: Optional ledger override; must share ``stock_store``

    Returns:
        Configured SaleEngine
    """
    global _sale_engine

    if _sale_engine is not None and stock_store is None and ledger is None:
        return _sale_engine

    store = stock_store or await _default_stock_store()
    engine = SaleEngine(
        stock_store=store,
        ledger=ledger or await get_stock_ledger(stock_store),
    )

    if stock_store is None and ledger is None:
        _sale_engine = engine

    return engine


async def get_presentation_catalog(
    stock_store: "IStockStore | None" = None,
) -> PresentationCatalog:
    """Get or create the PresentationCatalog."""
    global _presentation_catalog

    if _presentation_catalog is not None and stock_store is None:
        return _presentation_catalog

    catalog = PresentationCatalog(stock_store=stock_store or await _default_stock_store())

    if stock_store is None:
        _presentation_catalog = catalog

    return catalog


def get_critical_stock_monitor(
    thresholds: CriticalityThresholds | None = None,
) -> CriticalStockMonitor:
    """
    Get or create the CriticalStockMonitor.

    Thresholds come from ``StockSettings`` unless overridden.
    """
    global _critical_stock_monitor

    if _critical_stock_monitor is not None and thresholds is None:
        return _critical_stock_monitor

    if thresholds is None:
        from stockledger.config import get_settings

        stock = get_settings().stock
        monitor = CriticalStockMonitor(
            CriticalityThresholds(
                sin_stock_at=stock.sin_stock_at,
                critico_at=stock.critico_at,
                bajo_at=stock.bajo_at,
            )
        )
        _critical_stock_monitor = monitor
        return monitor

    return CriticalStockMonitor(thresholds)


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _stock_ledger
    global _sale_engine
    global _presentation_catalog
    global _critical_stock_monitor
    global _item_locks

    _stock_ledger = None
    _sale_engine = None
    _presentation_catalog = None
    _critical_stock_monitor = None
    _item_locks = None


__all__ = [
    # Factory functions
    "get_stock_ledger",
    "get_sale_engine",
    "get_presentation_catalog",
    "get_critical_stock_monitor",
    # Reset
    "reset_services",
]
