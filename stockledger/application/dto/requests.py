"""Request DTOs for API endpoints.

Pydantic v2 models for request validation.
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from stockledger.core.entities import MovementFilter, MovementType, SaleRequest, SaleType


class ReceiveStockRequest(BaseModel):
    """Request to receive stock (Entrada movement).

    Either ``stock_item_id`` (restock an existing item) or ``name`` (create a
    new item) must be given. Quantity is ``cases * units_per_case +
    loose_units`` atomic units.
    """

    stock_item_id: int | None = Field(
        default=None,
        description="Existing stock item to restock",
    )

    # New item fields
    name: str | None = Field(default=None, min_length=1, description="Product name")
    brand: str | None = Field(default=None, description="Brand")
    model: str | None = Field(default=None, description="Model")
    code: str | None = Field(default=None, description="Product code")
    base_price: float = Field(default=0.0, ge=0, description="Base price per unit")
    currency: str = Field(default="PYG", description="Price currency")

    # Quantity
    cases: int = Field(default=0, ge=0, description="Sealed cases received")
    units_per_case: int = Field(default=1, ge=1, description="Units in each case")
    loose_units: int = Field(default=0, ge=0, description="Units received outside cases")

    # Presentation prices
    unit_price: float | None = Field(default=None, ge=0, description="Price per unit")
    case_price: float | None = Field(default=None, ge=0, description="Price per case")

    # Ledger metadata
    load_code: str | None = Field(default=None, description="Load code of the receipt")
    unit_cost: float | None = Field(default=None, ge=0, description="Cost per unit")
    actor: str = Field(default="Sistema", description="User recording the receipt")
    reason: str | None = Field(default=None, description="Free motive text")
    dest_location: str | None = Field(default=None, description="Receiving location")
    external_reference: str | None = Field(default=None, description="PO or delivery reference")
    invoice_number: str | None = Field(default=None, description="Supplier invoice number")

    @model_validator(mode="after")
    def check_target_and_quantity(self) -> "ReceiveStockRequest":
        if self.stock_item_id is None and not self.name:
            raise ValueError("either stock_item_id or name is required")
        if self.total_units <= 0:
            raise ValueError("at least one unit must be received")
        return self

    @property
    def total_units(self) -> int:
        return self.cases * self.units_per_case + self.loose_units


class AddPresentationRequest(BaseModel):
    """Request to add a presentation to a stock item."""

    conversion_factor: int = Field(..., description="Atomic units per presentation")
    price: float | None = Field(default=None, ge=0, description="Presentation price")
    currency: str = Field(default="PYG", description="Price currency")
    name: str | None = Field(default=None, description="Display name")
    is_default: bool = Field(default=False, description="Mark as default presentation")


class SaleRequestBody(BaseModel):
    """Request to simulate or commit a sale."""

    stock_item_id: int = Field(..., description="Stock item to sell")
    sale_type: SaleType = Field(..., description="case_complete or loose_units")
    presentation_id: int | None = Field(
        default=None,
        description="Presentation sold (required for case_complete)",
    )
    quantity: int = Field(..., gt=0, description="Cases or units to sell")

    actor: str = Field(default="Sistema", description="User selling")
    reason: str | None = Field(default=None, description="Free motive text")
    client_or_destination: str | None = Field(default=None, description="Client")
    invoice_number: str | None = Field(default=None, description="Invoice number")
    external_reference: str | None = Field(default=None, description="External reference")

    def to_sale_request(self) -> SaleRequest:
        return SaleRequest(
            stock_item_id=self.stock_item_id,
            sale_type=self.sale_type,
            presentation_id=self.presentation_id,
            quantity=self.quantity,
            actor=self.actor,
            reason=self.reason,
            client_or_destination=self.client_or_destination,
            invoice_number=self.invoice_number,
            external_reference=self.external_reference,
        )


class SimulateSaleRequest(SaleRequestBody):
    """Request to check a sale without committing it."""


class CommitSaleRequest(SaleRequestBody):
    """Request to commit a sale."""

    expected_balance: int | None = Field(
        default=None,
        ge=0,
        description="Balance seen by the simulation; a mismatch is rejected",
    )


# Movements recorded directly on the ledger; sales go through the sale engine
RECORDABLE_TYPES = (
    MovementType.ENTRADA,
    MovementType.AJUSTE,
    MovementType.TRANSFERENCIA,
    MovementType.ASIGNACION,
)


class RecordMovementRequest(BaseModel):
    """Request to record an adjustment, transfer or assignment."""

    stock_item_id: int = Field(..., description="Stock item affected")
    movement_type: MovementType = Field(..., description="Movement type")
    quantity_delta: int = Field(..., description="Signed change in atomic units")

    actor: str = Field(default="Sistema", description="User recording the movement")
    reason: str | None = Field(default=None, description="Free motive text")
    origin_location: str | None = Field(default=None, description="Origin location")
    dest_location: str | None = Field(default=None, description="Destination location")
    external_reference: str | None = Field(default=None, description="External reference")
    client_or_destination: str | None = Field(
        default=None, description="Client or assigned destination"
    )
    invoice_number: str | None = Field(default=None, description="Invoice number")
    load_code: str | None = Field(default=None, description="Load code")
    unit_cost: float | None = Field(default=None, ge=0, description="Cost per unit")

    @model_validator(mode="after")
    def check_movement_type(self) -> "RecordMovementRequest":
        if self.movement_type not in RECORDABLE_TYPES:
            raise ValueError(
                f"{self.movement_type.value} movements are recorded through sales"
            )
        return self


class MovementQueryRequest(BaseModel):
    """Ledger query filters."""

    date_from: datetime | None = Field(default=None, description="Inclusive lower bound")
    date_to: datetime | None = Field(default=None, description="Inclusive upper bound")
    movement_type: MovementType | None = Field(default=None, description="Movement type")
    stock_item_id: int | None = Field(default=None, description="Stock item")
    search_text: str | None = Field(
        default=None,
        description="Matches item name, load code, actor, reason or client",
    )
    limit: int | None = Field(default=None, ge=1, description="Maximum entries")

    def to_filter(self) -> MovementFilter:
        return MovementFilter(**self.model_dump())
