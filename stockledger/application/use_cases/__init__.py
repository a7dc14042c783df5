"""Application use cases."""

from stockledger.application.use_cases.check_critical_stock import (
    CheckCriticalStockUseCase,
    CriticalStockResult,
    ProductSummaryResult,
)
from stockledger.application.use_cases.export_movements import (
    ExportMovementsUseCase,
    ExportResult,
)
from stockledger.application.use_cases.manage_presentations import (
    ManagePresentationsUseCase,
)
from stockledger.application.use_cases.query_movements import QueryMovementsUseCase
from stockledger.application.use_cases.receive_stock import (
    ReceiveStockResult,
    ReceiveStockUseCase,
)
from stockledger.application.use_cases.record_movement import RecordMovementUseCase
from stockledger.application.use_cases.sell_stock import SellStockUseCase

__all__ = [
    "ReceiveStockUseCase",
    "ReceiveStockResult",
    "SellStockUseCase",
    "RecordMovementUseCase",
    "QueryMovementsUseCase",
    "ExportMovementsUseCase",
    "ExportResult",
    "CheckCriticalStockUseCase",
    "CriticalStockResult",
    "ProductSummaryResult",
    "ManagePresentationsUseCase",
]
