"""Unit tests for domain exceptions."""

import pytest

from stockledger.core.exceptions import (
    AlreadyOpenError,
    CatalogError,
    ConcurrentModificationError,
    ConfigurationError,
    DatabaseError,
    DuplicateAtomicPresentationError,
    InsufficientStockError,
    InvalidConversionFactorError,
    InvalidPresentationError,
    LedgerIntegrityViolationError,
    OpenBoxError,
    OverdrawError,
    SaleError,
    StockItemNotFoundError,
    StockLedgerError,
    StorageError,
    ValidationError,
)


class TestStockLedgerError:
    """Tests for base StockLedgerError exception."""

    def test_basic_initialization(self):
        error = StockLedgerError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "StockLedgerError"
        assert error.details == {}

    def test_with_custom_code(self):
        error = StockLedgerError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = StockLedgerError("Boom", code="BOOM", details={"key": "value"})
        assert error.to_dict() == {
            "error": "BOOM",
            "message": "Boom",
            "details": {"key": "value"},
        }

    def test_can_be_raised_and_caught(self):
        with pytest.raises(StockLedgerError) as exc_info:
            raise StockLedgerError("Test error")
        assert exc_info.value.message == "Test error"


class TestSaleErrors:
    def test_insufficient_stock(self):
        error = InsufficientStockError(7, requested=24, available=15, reason="one sealed case")
        assert isinstance(error, SaleError)
        assert error.code == "INSUFFICIENT_STOCK"
        assert error.details["requested"] == 24
        assert error.details["available"] == 15
        assert "one sealed case" in error.message

    def test_insufficient_stock_without_reason(self):
        error = InsufficientStockError(7, requested=3, available=1)
        assert error.details["reason"] is None
        assert "(" not in error.message

    def test_concurrent_modification(self):
        error = ConcurrentModificationError(3, expected=30, actual=25)
        assert isinstance(error, SaleError)
        assert error.code == "CONCURRENT_MODIFICATION"
        assert error.details == {
            "stock_item_id": 3,
            "expected_balance": 30,
            "actual_balance": 25,
        }


class TestCatalogErrors:
    def test_invalid_presentation(self):
        error = InvalidPresentationError(1, 99, "presentation not found")
        assert isinstance(error, CatalogError)
        assert error.code == "INVALID_PRESENTATION"
        assert error.details["presentation_id"] == 99

    def test_invalid_conversion_factor_keeps_value_as_text(self):
        error = InvalidConversionFactorError(2.5)
        assert error.code == "INVALID_CONVERSION_FACTOR"
        assert error.details["conversion_factor"] == "2.5"

    def test_duplicate_atomic(self):
        error = DuplicateAtomicPresentationError(4, existing_id=10)
        assert error.code == "DUPLICATE_ATOMIC_PRESENTATION"
        assert error.details["existing_id"] == 10


class TestOpenBoxErrors:
    def test_already_open(self):
        error = AlreadyOpenError(1, units_remaining=7)
        assert isinstance(error, OpenBoxError)
        assert error.code == "ALREADY_OPEN"
        assert error.details["units_remaining"] == 7

    def test_overdraw(self):
        error = OverdrawError(1, requested=9, remaining=7)
        assert isinstance(error, OpenBoxError)
        assert error.code == "OVERDRAW"
        assert "only 7 remaining" in error.message


class TestOtherErrors:
    def test_ledger_integrity_violation_merges_details(self):
        error = LedgerIntegrityViolationError(2, "bad arithmetic", balance_before=5)
        assert error.code == "LEDGER_INTEGRITY_VIOLATION"
        assert error.details["balance_before"] == 5
        assert error.details["reason"] == "bad arithmetic"

    def test_stock_item_not_found(self):
        error = StockItemNotFoundError(42)
        assert isinstance(error, StorageError)
        assert error.code == "STOCK_ITEM_NOT_FOUND"
        assert "42" in error.message

    def test_database_error(self):
        error = DatabaseError("commit_movement", "disk I/O error")
        assert error.code == "DATABASE_ERROR"
        assert error.details["operation"] == "commit_movement"

    def test_validation_error_truncates_value(self):
        error = ValidationError("field", "too long", "x" * 500)
        assert error.code == "VALIDATION_ERROR"
        assert len(error.details["value"]) == 100

    def test_configuration_error_is_base_subclass(self):
        assert issubclass(ConfigurationError, StockLedgerError)
