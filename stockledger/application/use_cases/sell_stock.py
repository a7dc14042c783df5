"""Sell Stock Use Case: simulate and commit sales through the sale engine."""

from stockledger.application.dto.requests import CommitSaleRequest, SimulateSaleRequest
from stockledger.application.dto.responses import (
    SaleCommitResponse,
    SaleSimulationResponse,
    item_to_response,
    movement_to_response,
    open_box_to_response,
)
from stockledger.config import get_logger, get_settings
from stockledger.core.entities import SaleSimulation
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import SaleCommitResult, SaleEngine

logger = get_logger(__name__)


class SellStockUseCase:
    """
    Sell stock by whole cases or loose units.

    ``simulate`` never writes. ``execute`` commits against the balance the
    caller saw when ``expected_balance`` is given, and otherwise simulates and
    commits with the configured number of retries.
    """

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        sale_engine: SaleEngine | None = None,
        retry_attempts: int | None = None,
    ):
        self._stock_store = stock_store
        self._sale_engine = sale_engine
        self._retry_attempts = retry_attempts

    async def _get_sale_engine(self) -> SaleEngine:
        if self._sale_engine is None:
            from stockledger.application.services import get_sale_engine

            self._sale_engine = await get_sale_engine(self._stock_store)
        return self._sale_engine

    @property
    def retry_attempts(self) -> int:
        if self._retry_attempts is None:
            return get_settings().stock.commit_retry_attempts
        return self._retry_attempts

    async def simulate(self, request: SimulateSaleRequest) -> SaleSimulation:
        """Check feasibility and allocation of a sale."""
        engine = await self._get_sale_engine()
        simulation = await engine.simulate(request.to_sale_request())
        logger.debug(
            "sale_simulated",
            stock_item_id=request.stock_item_id,
            sale_type=request.sale_type.value,
            quantity=request.quantity,
            feasible=simulation.feasible,
        )
        return simulation

    async def execute(self, request: CommitSaleRequest) -> SaleCommitResult:
        """Commit a sale."""
        engine = await self._get_sale_engine()
        sale = request.to_sale_request()

        if request.expected_balance is not None:
            return await engine.commit(sale, expected_balance=request.expected_balance)
        return await engine.commit_with_retry(sale, attempts=self.retry_attempts)

    @staticmethod
    def simulation_to_response(simulation: SaleSimulation) -> SaleSimulationResponse:
        return SaleSimulationResponse(
            feasible=simulation.feasible,
            reason=simulation.reason,
            sale_type=simulation.sale_type.value,
            quantity_requested=simulation.quantity_requested,
            units_requested=simulation.units_requested,
            units_from_open_box=simulation.units_from_open_box,
            units_from_new_case=simulation.units_from_new_case,
            units_from_sealed=simulation.units_from_sealed,
            units_from_loose=simulation.units_from_loose,
            opens_new_case=simulation.opens_new_case,
            case_presentation_id=simulation.case_presentation_id,
            resulting_open_box_remainder=simulation.resulting_open_box_remainder,
            balance_before=simulation.balance_before,
            projected_balance=simulation.projected_balance,
        )

    def to_response(self, result: SaleCommitResult) -> SaleCommitResponse:
        """Convert result to API response."""
        return SaleCommitResponse(
            stock_item=item_to_response(result.item),
            movement=movement_to_response(result.entry),
            allocation=self.simulation_to_response(result.simulation),
            open_box=open_box_to_response(result.open_box),
        )
