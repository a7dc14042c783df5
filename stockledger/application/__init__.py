"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from stockledger.application.dto.requests import (
    AddPresentationRequest,
    CommitSaleRequest,
    MovementQueryRequest,
    ReceiveStockRequest,
    RecordMovementRequest,
    SimulateSaleRequest,
)
from stockledger.application.dto.responses import ErrorResponse, HealthResponse
from stockledger.application.services import (
    get_critical_stock_monitor,
    get_presentation_catalog,
    get_sale_engine,
    get_stock_ledger,
    reset_services,
)
from stockledger.application.use_cases import (
    CheckCriticalStockUseCase,
    ExportMovementsUseCase,
    ManagePresentationsUseCase,
    QueryMovementsUseCase,
    ReceiveStockUseCase,
    RecordMovementUseCase,
    SellStockUseCase,
)

__all__ = [
    # Request DTOs
    "ReceiveStockRequest",
    "AddPresentationRequest",
    "SimulateSaleRequest",
    "CommitSaleRequest",
    "RecordMovementRequest",
    "MovementQueryRequest",
    # Response DTOs
    "ErrorResponse",
    "HealthResponse",
    # Services
    "get_stock_ledger",
    "get_sale_engine",
    "get_presentation_catalog",
    "get_critical_stock_monitor",
    "reset_services",
    # Use cases
    "ReceiveStockUseCase",
    "SellStockUseCase",
    "RecordMovementUseCase",
    "QueryMovementsUseCase",
    "ExportMovementsUseCase",
    "CheckCriticalStockUseCase",
    "ManagePresentationsUseCase",
]
