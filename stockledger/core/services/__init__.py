"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from stockledger.core.services.critical_stock_monitor import (
    CriticalityThresholds,
    CriticalStockMonitor,
    ProductSummary,
    StockAlert,
)
from stockledger.core.services.open_box_tracker import OpenBoxTracker
from stockledger.core.services.presentation_catalog import (
    PresentationCatalog,
    pick_atomic,
    pick_case,
    pick_default,
)
from stockledger.core.services.sale_engine import (
    SaleCommitResult,
    SaleEngine,
    SaleState,
    plan_sale,
)
from stockledger.core.services.stock_ledger import (
    ItemLockRegistry,
    LedgerStatistics,
    MovementTypeStats,
    StockLedger,
    signed_delta,
)

__all__ = [
    # Presentation catalog
    "PresentationCatalog",
    "pick_atomic",
    "pick_case",
    "pick_default",
    # Open boxes
    "OpenBoxTracker",
    # Ledger
    "StockLedger",
    "ItemLockRegistry",
    "LedgerStatistics",
    "MovementTypeStats",
    "signed_delta",
    # Sales
    "SaleEngine",
    "SaleState",
    "SaleCommitResult",
    "plan_sale",
    # Alerts
    "CriticalStockMonitor",
    "CriticalityThresholds",
    "StockAlert",
    "ProductSummary",
]
