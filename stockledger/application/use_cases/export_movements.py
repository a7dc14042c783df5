"""Export Movements Use Case: ledger range as a CSV document."""

from dataclasses import dataclass
from datetime import datetime

from stockledger.application.dto.requests import MovementQueryRequest
from stockledger.config import get_logger
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import StockLedger

logger = get_logger(__name__)

MEDIA_TYPES = {"csv": "text/csv"}


@dataclass
class ExportResult:
    """Rendered export ready to be sent as a file."""

    content: str
    filename: str
    media_type: str


class ExportMovementsUseCase:
    """Export the full filtered ledger range. No page size cap applies."""

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

    async def execute(
        self,
        request: MovementQueryRequest,
        format: str = "csv",
    ) -> ExportResult:
        """Execute export use case."""
        ledger = await self._get_ledger()
        content = await ledger.export(request.to_filter(), format=format)

        filename = f"movimientos_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.{format}"
        logger.info("movements_export_ready", filename=filename, size=len(content))
        return ExportResult(
            content=content,
            filename=filename,
            media_type=MEDIA_TYPES[format],
        )
