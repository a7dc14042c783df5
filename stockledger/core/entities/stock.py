"""Stock domain entities: items, presentations, open boxes, and ledger entries."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MovementType(str, Enum):
    """Types of balance-affecting events."""

    ENTRADA = "Entrada"
    SALIDA = "Salida"
    TRANSFERENCIA = "Transferencia"
    AJUSTE = "Ajuste"
    ASIGNACION = "Asignacion"


class CriticalityLevel(str, Enum):
    """Derived stock sufficiency level. Never stored."""

    SIN_STOCK = "SIN_STOCK"
    CRITICO = "CRITICO"
    BAJO = "BAJO"
    NORMAL = "NORMAL"

    @property
    def severity(self) -> int:
        """Lower is more severe."""
        return _SEVERITY[self]


_SEVERITY = {
    CriticalityLevel.SIN_STOCK: 0,
    CriticalityLevel.CRITICO: 1,
    CriticalityLevel.BAJO: 2,
    CriticalityLevel.NORMAL: 3,
}


def delta_sign_allowed(movement_type: MovementType, quantity_delta: int) -> bool:
    """Check the sign of a delta against what its movement type permits."""
    if movement_type == MovementType.ENTRADA:
        return quantity_delta > 0
    if movement_type in (MovementType.SALIDA, MovementType.ASIGNACION):
        return quantity_delta < 0
    if movement_type == MovementType.TRANSFERENCIA:
        # 0 is a pure location move
        return quantity_delta <= 0
    return quantity_delta != 0


class StockItem(BaseModel):
    """A trackable product with a balance in atomic units."""

    id: int | None = None
    name: str
    brand: str | None = None
    model: str | None = None
    code: str | None = None
    load_code: str | None = None  # load code of the receipt that created it
    total_units_available: int = 0
    base_price: float = 0.0
    currency: str = "PYG"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Presentation(BaseModel):
    """A sellable unit of a stock item with a fixed conversion factor."""

    id: int | None = None
    stock_item_id: int
    name: str
    conversion_factor: int = Field(..., ge=1)
    price: float | None = None
    currency: str = "PYG"
    is_default: bool = False

    @property
    def is_atomic(self) -> bool:
        return self.conversion_factor == 1


class OpenBox(BaseModel):
    """A partially consumed case, drawn down before a new one is broken."""

    stock_item_id: int
    presentation_id: int
    units_original: int = Field(..., ge=1)
    units_remaining: int = Field(..., ge=0)
    opened_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_open(self) -> bool:
        return self.units_remaining > 0

    @property
    def percent_used(self) -> float:
        used = self.units_original - self.units_remaining
        return round(used * 100.0 / self.units_original, 2)


class MovementEntry(BaseModel):
    """One immutable record of a balance-affecting event."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    movement_type: MovementType
    stock_item_id: int
    quantity_delta: int  # signed, atomic units
    balance_before: int
    balance_after: int
    actor: str = "Sistema"
    reason: str | None = None
    origin_location: str | None = None
    dest_location: str | None = None
    external_reference: str | None = None
    client_or_destination: str | None = None
    invoice_number: str | None = None
    load_code: str | None = None
    unit_cost: float | None = None

    @property
    def quantity(self) -> int:
        """Unsigned quantity moved."""
        return abs(self.quantity_delta)


class MovementFilter(BaseModel):
    """Filters for ledger queries. All fields are optional and combined with AND."""

    date_from: datetime | None = None
    date_to: datetime | None = None
    movement_type: MovementType | None = None
    stock_item_id: int | None = None
    search_text: str | None = None
    limit: int | None = Field(default=None, ge=1)
