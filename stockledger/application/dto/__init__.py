"""Data transfer objects for API contracts."""

from stockledger.application.dto.requests import (
    AddPresentationRequest,
    CommitSaleRequest,
    MovementQueryRequest,
    ReceiveStockRequest,
    RecordMovementRequest,
    SimulateSaleRequest,
)
from stockledger.application.dto.responses import (
    ActiveItemResponse,
    ComponentHealthResponse,
    CriticalStockResponse,
    ErrorResponse,
    HealthResponse,
    MovementListResponse,
    MovementResponse,
    MovementStatsResponse,
    MovementTypeStatsResponse,
    OpenBoxResponse,
    PresentationResponse,
    ProductSummaryResponse,
    ReceiveStockResponse,
    SaleCommitResponse,
    SaleSimulationResponse,
    StockAlertResponse,
    StockItemResponse,
)

__all__ = [
    # Requests
    "ReceiveStockRequest",
    "AddPresentationRequest",
    "SimulateSaleRequest",
    "CommitSaleRequest",
    "RecordMovementRequest",
    "MovementQueryRequest",
    # Responses
    "StockItemResponse",
    "PresentationResponse",
    "OpenBoxResponse",
    "MovementResponse",
    "ReceiveStockResponse",
    "SaleSimulationResponse",
    "SaleCommitResponse",
    "MovementListResponse",
    "MovementTypeStatsResponse",
    "ActiveItemResponse",
    "MovementStatsResponse",
    "StockAlertResponse",
    "CriticalStockResponse",
    "ProductSummaryResponse",
    "ComponentHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
