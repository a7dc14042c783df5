"""Core domain entities."""

from stockledger.core.entities.sale import SaleRequest, SaleSimulation, SaleType
from stockledger.core.entities.stock import (
    CriticalityLevel,
    MovementEntry,
    MovementFilter,
    MovementType,
    OpenBox,
    Presentation,
    StockItem,
    delta_sign_allowed,
)

__all__ = [
    # Stock entities
    "StockItem",
    "Presentation",
    "OpenBox",
    "MovementEntry",
    "MovementFilter",
    "MovementType",
    "CriticalityLevel",
    "delta_sign_allowed",
    # Sale entities
    "SaleRequest",
    "SaleSimulation",
    "SaleType",
]
