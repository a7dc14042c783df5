"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from stockledger.application.services import reset_services
from stockledger.config import reset_settings
from stockledger.core.entities import MovementType, Presentation, StockItem
from stockledger.core.services import PresentationCatalog, StockLedger
from stockledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database
from stockledger.infrastructure.storage.sqlite.stock_store import SQLiteStockStore


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Fresh settings and service singletons for every test."""
    reset_settings()
    reset_services()
    yield
    reset_services()
    reset_settings()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path) -> MagicMock:
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Temporary database with all migrations applied."""
    await initialize_database(temp_db_path)
    return temp_db_path


@pytest.fixture
async def stock_store(
    initialized_db: Path, mock_settings: MagicMock
) -> AsyncGenerator[SQLiteStockStore, None]:
    """SQLite stock store bound to the temporary database."""
    import stockledger.infrastructure.storage.sqlite.connection as conn_module

    conn_module._pool = None
    mock_settings.storage.db_path = initialized_db

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield SQLiteStockStore()
        finally:
            await conn_module.close_pool()


@pytest.fixture
def ledger(stock_store: SQLiteStockStore) -> StockLedger:
    return StockLedger(stock_store)


@pytest.fixture
def catalog(stock_store: SQLiteStockStore) -> PresentationCatalog:
    return PresentationCatalog(stock_store)


@pytest.fixture
def make_item(stock_store: SQLiteStockStore, ledger: StockLedger):
    """
    Factory for a stocked item: atomic presentation, optional default case
    presentation, and an opening Entrada of ``units``.
    """

    async def _make(
        units: int = 0,
        case_factor: int | None = 12,
        name: str = "Aceite 1L",
    ) -> tuple[StockItem, Presentation | None]:
        item = await stock_store.create_item(StockItem(name=name, brand="Acme"))
        await stock_store.add_presentation(
            Presentation(
                stock_item_id=item.id,
                name="Unidad",
                conversion_factor=1,
                price=10000.0,
                is_default=case_factor is None,
            )
        )
        case = None
        if case_factor is not None:
            case = await stock_store.add_presentation(
                Presentation(
                    stock_item_id=item.id,
                    name=f"Caja x{case_factor}",
                    conversion_factor=case_factor,
                    price=110000.0,
                    is_default=True,
                )
            )
        if units:
            await ledger.record(item.id, MovementType.ENTRADA, units)
        item = await stock_store.get_item(item.id)
        return item, case

    return _make
