"""Record Movement Use Case: adjustments, transfers and assignments."""

from stockledger.application.dto.requests import RecordMovementRequest
from stockledger.application.dto.responses import MovementResponse, movement_to_response
from stockledger.config import get_logger
from stockledger.core.entities import MovementEntry
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import StockLedger

logger = get_logger(__name__)


class RecordMovementUseCase:
    """Record a non-sale movement against the current balance of an item."""

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        ledger: StockLedger | None = None,
    ):
        self._stock_store = stock_store
        self._ledger = ledger

    async def _get_ledger(self) -> StockLedger:
        if self._ledger is None:
            from stockledger.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger(self._stock_store)
        return self._ledger

    async def execute(self, request: RecordMovementRequest) -> MovementEntry:
        """Execute record movement use case."""
        ledger = await self._get_ledger()
        metadata = request.model_dump(
            exclude={"stock_item_id", "movement_type", "quantity_delta"}
        )
        entry = await ledger.record(
            request.stock_item_id,
            request.movement_type,
            request.quantity_delta,
            **metadata,
        )
        logger.info(
            "movement_recorded",
            movement_id=entry.id,
            stock_item_id=entry.stock_item_id,
            type=entry.movement_type.value,
            actor=entry.actor,
        )
        return entry

    def to_response(self, entry: MovementEntry) -> MovementResponse:
        """Convert result to API response."""
        return movement_to_response(entry)
