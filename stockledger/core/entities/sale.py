"""Sale request and simulation entities."""

from enum import Enum

from pydantic import BaseModel, Field


class SaleType(str, Enum):
    """How a sale draws from stock."""

    CASE_COMPLETE = "case_complete"
    LOOSE_UNITS = "loose_units"


class SaleRequest(BaseModel):
    """A request to sell stock, with the metadata recorded on commit."""

    stock_item_id: int
    sale_type: SaleType
    presentation_id: int | None = None  # required for case_complete
    quantity: int = Field(..., gt=0)

    # Recorded on the ledger entry
    actor: str = "Sistema"
    reason: str | None = None
    client_or_destination: str | None = None
    invoice_number: str | None = None
    external_reference: str | None = None


class SaleSimulation(BaseModel):
    """Feasibility and allocation of a sale against a point-in-time snapshot."""

    feasible: bool
    reason: str | None = None
    sale_type: SaleType
    quantity_requested: int
    units_requested: int  # atomic units the sale would remove
    units_from_open_box: int = 0
    units_from_new_case: int = 0
    units_from_sealed: int = 0  # whole cases sold without opening
    units_from_loose: int = 0  # units outside whole cases, used when no case is left
    opens_new_case: bool = False
    case_presentation_id: int | None = None
    resulting_open_box_remainder: int = 0
    balance_before: int
    projected_balance: int
