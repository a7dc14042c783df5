"""Stock endpoints: receipts, presentations, items and criticality."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_check_critical_stock_use_case,
    get_manage_presentations_use_case,
    get_receive_stock_use_case,
    get_store,
)
from stockledger.application.dto.requests import AddPresentationRequest, ReceiveStockRequest
from stockledger.application.dto.responses import (
    CriticalStockResponse,
    ErrorResponse,
    PresentationResponse,
    ProductSummaryResponse,
    ReceiveStockResponse,
    StockItemResponse,
    item_to_response,
)
from stockledger.application.use_cases import (
    CheckCriticalStockUseCase,
    ManagePresentationsUseCase,
    ReceiveStockUseCase,
)
from stockledger.core.exceptions import StockItemNotFoundError
from stockledger.core.interfaces import IStockStore

router = APIRouter(prefix="/api/stock", tags=["stock"])


@router.get("", response_model=list[StockItemResponse])
async def list_stock_items(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: IStockStore = Depends(get_store),
) -> list[StockItemResponse]:
    """List stock items with their balances."""
    items = await store.list_items(limit=limit, offset=offset)
    return [item_to_response(item) for item in items]


@router.post(
    "/receive",
    response_model=ReceiveStockResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def receive_stock(
    request: ReceiveStockRequest,
    use_case: ReceiveStockUseCase = Depends(get_receive_stock_use_case),
) -> ReceiveStockResponse:
    """Receive stock (Entrada movement), creating the item on first receipt."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("/critical", response_model=CriticalStockResponse)
async def get_critical_stock(
    limit: int | None = Query(default=None, ge=1),
    use_case: CheckCriticalStockUseCase = Depends(get_check_critical_stock_use_case),
) -> CriticalStockResponse:
    """Items at SIN_STOCK, CRITICO or BAJO, most severe first."""
    result = await use_case.execute(limit=limit)
    return use_case.to_response(result)


@router.get(
    "/{stock_item_id}",
    response_model=StockItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_stock_item(
    stock_item_id: int,
    store: IStockStore = Depends(get_store),
) -> StockItemResponse:
    """Get a stock item by ID."""
    item = await store.get_item(stock_item_id)
    if item is None:
        raise StockItemNotFoundError(stock_item_id)
    return item_to_response(item)


@router.get(
    "/{stock_item_id}/summary",
    response_model=ProductSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_stock_summary(
    stock_item_id: int,
    use_case: CheckCriticalStockUseCase = Depends(get_check_critical_stock_use_case),
) -> ProductSummaryResponse:
    """Sealed cases, loose units, open box and criticality of an item."""
    result = await use_case.summarize(stock_item_id)
    return use_case.summary_to_response(result)


@router.get(
    "/{stock_item_id}/presentations",
    response_model=list[PresentationResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_presentations(
    stock_item_id: int,
    use_case: ManagePresentationsUseCase = Depends(get_manage_presentations_use_case),
) -> list[PresentationResponse]:
    """List the presentations of an item."""
    presentations = await use_case.list_presentations(stock_item_id)
    return [use_case.to_response(p) for p in presentations]


@router.post(
    "/{stock_item_id}/presentations",
    response_model=PresentationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def add_presentation(
    stock_item_id: int,
    request: AddPresentationRequest,
    use_case: ManagePresentationsUseCase = Depends(get_manage_presentations_use_case),
) -> PresentationResponse:
    """Add a presentation to an item."""
    presentation = await use_case.add_presentation(stock_item_id, request)
    return use_case.to_response(presentation)
