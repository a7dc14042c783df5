"""Ledger endpoints: listing, export, statistics and direct movements."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from stockledger.api.dependencies import (
    get_export_movements_use_case,
    get_query_movements_use_case,
    get_record_movement_use_case,
)
from stockledger.application.dto.requests import MovementQueryRequest, RecordMovementRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    MovementListResponse,
    MovementResponse,
    MovementStatsResponse,
)
from stockledger.application.use_cases import (
    ExportMovementsUseCase,
    QueryMovementsUseCase,
    RecordMovementUseCase,
)

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.get("", response_model=MovementListResponse)
async def list_movements(
    filters: MovementQueryRequest = Depends(),
    use_case: QueryMovementsUseCase = Depends(get_query_movements_use_case),
) -> MovementListResponse:
    """List ledger entries, most recent first."""
    entries = await use_case.execute(filters)
    return use_case.to_response(entries)


@router.get(
    "/export",
    response_class=Response,
    responses={400: {"model": ErrorResponse}},
)
async def export_movements(
    filters: MovementQueryRequest = Depends(),
    format: str = Query(default="csv"),
    use_case: ExportMovementsUseCase = Depends(get_export_movements_use_case),
) -> Response:
    """Download the filtered ledger range."""
    result = await use_case.execute(filters, format=format)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.get("/stats", response_model=MovementStatsResponse)
async def movement_stats(
    filters: MovementQueryRequest = Depends(),
    top: int = Query(default=5, ge=1, le=100),
    use_case: QueryMovementsUseCase = Depends(get_query_movements_use_case),
) -> MovementStatsResponse:
    """Counts and units per movement type, plus the most active items."""
    stats = await use_case.statistics(filters, top=top)
    return use_case.stats_to_response(stats)


@router.post(
    "",
    response_model=MovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def record_movement(
    request: RecordMovementRequest,
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
) -> MovementResponse:
    """Record an Entrada, Ajuste, Transferencia or Asignacion."""
    entry = await use_case.execute(request)
    return use_case.to_response(entry)
