"""Sale endpoints: feasibility check and commit."""

from fastapi import APIRouter, Depends, status

from stockledger.api.dependencies import get_sell_stock_use_case
from stockledger.application.dto.requests import CommitSaleRequest, SimulateSaleRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    SaleCommitResponse,
    SaleSimulationResponse,
)
from stockledger.application.use_cases import SellStockUseCase

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.post(
    "/simulate",
    response_model=SaleSimulationResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def simulate_sale(
    request: SimulateSaleRequest,
    use_case: SellStockUseCase = Depends(get_sell_stock_use_case),
) -> SaleSimulationResponse:
    """
    Check a sale without writing anything.

    An infeasible sale is a normal response with ``feasible`` false.
    """
    simulation = await use_case.simulate(request)
    return use_case.simulation_to_response(simulation)


@router.post(
    "/commit",
    response_model=SaleCommitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def commit_sale(
    request: CommitSaleRequest,
    use_case: SellStockUseCase = Depends(get_sell_stock_use_case),
) -> SaleCommitResponse:
    """Commit a sale: one Salida entry plus the open box change."""
    result = await use_case.execute(request)
    return use_case.to_response(result)
