"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers.
"""

from functools import lru_cache

from stockledger.application.use_cases import (
    CheckCriticalStockUseCase,
    ExportMovementsUseCase,
    ManagePresentationsUseCase,
    QueryMovementsUseCase,
    ReceiveStockUseCase,
    RecordMovementUseCase,
    SellStockUseCase,
)
from stockledger.config import Settings, get_settings
from stockledger.core.interfaces import IStockStore
from stockledger.infrastructure.storage.sqlite import get_stock_store


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Store dependency
async def get_store() -> IStockStore:
    """Get stock store."""
    return await get_stock_store()


# Stock use case dependencies
def get_receive_stock_use_case() -> ReceiveStockUseCase:
    """Get receive stock use case."""
    return ReceiveStockUseCase()


def get_manage_presentations_use_case() -> ManagePresentationsUseCase:
    """Get presentation management use case."""
    return ManagePresentationsUseCase()


def get_check_critical_stock_use_case() -> CheckCriticalStockUseCase:
    """Get critical stock use case."""
    return CheckCriticalStockUseCase()


# Sales use case dependency
def get_sell_stock_use_case() -> SellStockUseCase:
    """Get sell stock use case."""
    return SellStockUseCase()


# Movement use case dependencies
def get_record_movement_use_case() -> RecordMovementUseCase:
    """Get record movement use case."""
    return RecordMovementUseCase()


def get_query_movements_use_case() -> QueryMovementsUseCase:
    """Get ledger query use case."""
    return QueryMovementsUseCase()


def get_export_movements_use_case() -> ExportMovementsUseCase:
    """Get ledger export use case."""
    return ExportMovementsUseCase()
