"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.entities import MovementEntry, OpenBox, Presentation, StockItem


class StockItemResponse(BaseModel):
    """Stock item response DTO."""

    id: int
    name: str
    brand: str | None = None
    model: str | None = None
    code: str | None = None
    load_code: str | None = None
    total_units_available: int
    base_price: float
    currency: str
    created_at: datetime
    updated_at: datetime


class PresentationResponse(BaseModel):
    """Presentation response DTO."""

    id: int
    stock_item_id: int
    name: str
    conversion_factor: int
    price: float | None = None
    currency: str
    is_default: bool


class OpenBoxResponse(BaseModel):
    """Open box response DTO."""

    stock_item_id: int
    presentation_id: int
    units_original: int
    units_remaining: int
    percent_used: float
    opened_at: datetime


class MovementResponse(BaseModel):
    """Ledger entry response DTO."""

    id: int
    timestamp: datetime
    movement_type: str
    stock_item_id: int
    quantity_delta: int
    balance_before: int
    balance_after: int
    actor: str
    reason: str | None = None
    origin_location: str | None = None
    dest_location: str | None = None
    external_reference: str | None = None
    client_or_destination: str | None = None
    invoice_number: str | None = None
    load_code: str | None = None
    unit_cost: float | None = None


class ReceiveStockResponse(BaseModel):
    """Response for stock receive operation."""

    stock_item: StockItemResponse
    presentations: list[PresentationResponse]
    movement: MovementResponse
    created: bool = False  # True if a new stock item was created


class SaleSimulationResponse(BaseModel):
    """Feasibility and allocation of a sale."""

    feasible: bool
    reason: str | None = None
    sale_type: str
    quantity_requested: int
    units_requested: int
    units_from_open_box: int
    units_from_new_case: int
    units_from_sealed: int
    units_from_loose: int
    opens_new_case: bool
    case_presentation_id: int | None = None
    resulting_open_box_remainder: int
    balance_before: int
    projected_balance: int


class SaleCommitResponse(BaseModel):
    """Response for a committed sale."""

    stock_item: StockItemResponse
    movement: MovementResponse
    allocation: SaleSimulationResponse
    open_box: OpenBoxResponse | None = None


class MovementListResponse(BaseModel):
    """Ledger query result, most recent first."""

    movements: list[MovementResponse]
    total: int


class MovementTypeStatsResponse(BaseModel):
    count: int
    units: int


class ActiveItemResponse(BaseModel):
    stock_item_id: int
    movements: int


class MovementStatsResponse(BaseModel):
    """Traceability summary over a ledger range."""

    total_movements: int
    by_type: dict[str, MovementTypeStatsResponse]
    most_active_items: list[ActiveItemResponse]


class StockAlertResponse(BaseModel):
    """Criticality of one stock item."""

    stock_item_id: int
    name: str
    brand: str | None = None
    total_units_available: int
    level: str


class CriticalStockResponse(BaseModel):
    """Critical stock report."""

    alerts: list[StockAlertResponse]
    counts: dict[str, int] = Field(
        default_factory=dict, description="Items per criticality level"
    )
    total_items: int
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class ProductSummaryResponse(BaseModel):
    """Stock of one item as sealed cases, loose units and open box."""

    stock_item_id: int
    name: str
    total_units_available: int
    case_factor: int
    sealed_cases: int
    loose_units: int
    has_open_box: bool
    open_box_remaining: int
    open_box_original: int
    open_box_percent_used: float
    level: str
    requires_restock: bool
    presentations: list[PresentationResponse] = Field(default_factory=list)


class ComponentHealthResponse(BaseModel):
    """Health of a backing component."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


# Entity converters shared by use cases


def item_to_response(item: StockItem) -> StockItemResponse:
    return StockItemResponse(
        id=item.id,  # type: ignore[arg-type]
        name=item.name,
        brand=item.brand,
        model=item.model,
        code=item.code,
        load_code=item.load_code,
        total_units_available=item.total_units_available,
        base_price=item.base_price,
        currency=item.currency,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def presentation_to_response(presentation: Presentation) -> PresentationResponse:
    return PresentationResponse(
        id=presentation.id,  # type: ignore[arg-type]
        stock_item_id=presentation.stock_item_id,
        name=presentation.name,
        conversion_factor=presentation.conversion_factor,
        price=presentation.price,
        currency=presentation.currency,
        is_default=presentation.is_default,
    )


def open_box_to_response(box: OpenBox | None) -> OpenBoxResponse | None:
    if box is None or not box.is_open:
        return None
    return OpenBoxResponse(
        stock_item_id=box.stock_item_id,
        presentation_id=box.presentation_id,
        units_original=box.units_original,
        units_remaining=box.units_remaining,
        percent_used=box.percent_used,
        opened_at=box.opened_at,
    )


def movement_to_response(entry: MovementEntry) -> MovementResponse:
    return MovementResponse(
        id=entry.id,  # type: ignore[arg-type]
        timestamp=entry.timestamp,
        movement_type=entry.movement_type.value,
        stock_item_id=entry.stock_item_id,
        quantity_delta=entry.quantity_delta,
        balance_before=entry.balance_before,
        balance_after=entry.balance_after,
        actor=entry.actor,
        reason=entry.reason,
        origin_location=entry.origin_location,
        dest_location=entry.dest_location,
        external_reference=entry.external_reference,
        client_or_destination=entry.client_or_destination,
        invoice_number=entry.invoice_number,
        load_code=entry.load_code,
        unit_cost=entry.unit_cost,
    )
