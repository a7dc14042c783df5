"""
Domain exceptions for the stock ledger.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(StockLedgerError):
    """Base exception for storage operations."""

    pass


class StockItemNotFoundError(StorageError):
    """Stock item not found in storage."""

    def __init__(self, stock_item_id: int):
        super().__init__(
            f"Stock item not found: {stock_item_id}",
            code="STOCK_ITEM_NOT_FOUND",
            details={"stock_item_id": stock_item_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Sale Exceptions
class SaleError(StockLedgerError):
    """Base exception for sale allocation failures."""

    pass


class InsufficientStockError(SaleError):
    """The sale exceeds what the allocation rules permit."""

    def __init__(
        self,
        stock_item_id: int,
        requested: int,
        available: int,
        reason: str | None = None,
    ):
        super().__init__(
            f"Insufficient stock for item {stock_item_id}: "
            f"requested {requested}, available {available}"
            + (f" ({reason})" if reason else ""),
            code="INSUFFICIENT_STOCK",
            details={
                "stock_item_id": stock_item_id,
                "requested": requested,
                "available": available,
                "reason": reason,
            },
        )


class ConcurrentModificationError(SaleError):
    """The balance changed between the feasibility check and the commit."""

    def __init__(self, stock_item_id: int, expected: int, actual: int):
        super().__init__(
            f"Stock item {stock_item_id} was modified concurrently: "
            f"expected balance {expected}, found {actual}",
            code="CONCURRENT_MODIFICATION",
            details={
                "stock_item_id": stock_item_id,
                "expected_balance": expected,
                "actual_balance": actual,
            },
        )


# Catalog Exceptions
class CatalogError(StockLedgerError):
    """Base exception for presentation catalog errors."""

    pass


class InvalidPresentationError(CatalogError):
    """Presentation is missing, unknown, or belongs to another item."""

    def __init__(self, stock_item_id: int, presentation_id: int | None, reason: str):
        super().__init__(
            f"Invalid presentation {presentation_id} for item {stock_item_id}: {reason}",
            code="INVALID_PRESENTATION",
            details={
                "stock_item_id": stock_item_id,
                "presentation_id": presentation_id,
                "reason": reason,
            },
        )


class InvalidConversionFactorError(CatalogError):
    """Conversion factor is not a positive integer."""

    def __init__(self, conversion_factor: Any):
        super().__init__(
            f"Conversion factor must be a positive integer, got {conversion_factor!r}",
            code="INVALID_CONVERSION_FACTOR",
            details={"conversion_factor": str(conversion_factor)},
        )


class DuplicateAtomicPresentationError(CatalogError):
    """A second factor-1 presentation was added to the same item."""

    def __init__(self, stock_item_id: int, existing_id: int | None):
        super().__init__(
            f"Stock item {stock_item_id} already has an atomic presentation",
            code="DUPLICATE_ATOMIC_PRESENTATION",
            details={"stock_item_id": stock_item_id, "existing_id": existing_id},
        )


# Open box Exceptions
class OpenBoxError(StockLedgerError):
    """Open box invariant violation. Signals a logic error upstream."""

    pass


class AlreadyOpenError(OpenBoxError):
    """An open box with remaining units already exists."""

    def __init__(self, stock_item_id: int, units_remaining: int):
        super().__init__(
            f"Stock item {stock_item_id} already has an open box "
            f"with {units_remaining} units remaining",
            code="ALREADY_OPEN",
            details={"stock_item_id": stock_item_id, "units_remaining": units_remaining},
        )


class OverdrawError(OpenBoxError):
    """More units were requested than remain in the open box."""

    def __init__(self, stock_item_id: int, requested: int, remaining: int):
        super().__init__(
            f"Cannot consume {requested} units from open box of item "
            f"{stock_item_id}: only {remaining} remaining",
            code="OVERDRAW",
            details={
                "stock_item_id": stock_item_id,
                "requested": requested,
                "remaining": remaining,
            },
        )


# Ledger Exceptions
class LedgerIntegrityViolationError(StockLedgerError):
    """Arithmetic mismatch on append. Internal consistency alarm."""

    def __init__(self, stock_item_id: int, reason: str, **details: Any):
        super().__init__(
            f"Ledger integrity violation for item {stock_item_id}: {reason}",
            code="LEDGER_INTEGRITY_VIOLATION",
            details={"stock_item_id": stock_item_id, "reason": reason, **details},
        )


# Validation Exceptions
class ValidationError(StockLedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class ConfigurationError(StockLedgerError):
    """Configuration error."""

    pass
