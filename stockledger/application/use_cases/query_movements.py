"""Query Movements Use Case: ledger listing and traceability statistics."""

from stockledger.application.dto.requests import MovementQueryRequest
from stockledger.application.dto.responses import (
    ActiveItemResponse,
    MovementListResponse,
    MovementStatsResponse,
    MovementTypeStatsResponse,
    movement_to_response,
)
from stockledger.config import get_settings
from stockledger.core.entities import MovementEntry
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import LedgerStatistics, StockLedger


class QueryMovementsUseCase:
    """Read the ledger, most recent entries first."""

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

    async def execute(self, request: MovementQueryRequest) -> list[MovementEntry]:
        """List matching entries, capped at the configured page size."""
        api = get_settings().api
        limit = min(request.limit or api.default_page_size, api.max_page_size)
        filters = request.to_filter().model_copy(update={"limit": limit})

        ledger = await self._get_ledger()
        return [entry async for entry in ledger.query(filters)]

    async def statistics(
        self, request: MovementQueryRequest, top: int = 5
    ) -> LedgerStatistics:
        ledger = await self._get_ledger()
        return await ledger.statistics(request.to_filter(), top=top)

    def to_response(self, entries: list[MovementEntry]) -> MovementListResponse:
        """Convert result to API response."""
        return MovementListResponse(
            movements=[movement_to_response(e) for e in entries],
            total=len(entries),
        )

    @staticmethod
    def stats_to_response(stats: LedgerStatistics) -> MovementStatsResponse:
        return MovementStatsResponse(
            total_movements=stats.total_movements,
            by_type={
                name: MovementTypeStatsResponse(count=s.count, units=s.units)
                for name, s in stats.by_type.items()
            },
            most_active_items=[
                ActiveItemResponse(stock_item_id=item_id, movements=count)
                for item_id, count in stats.most_active_items
            ],
        )
