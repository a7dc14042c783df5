"""Receive Stock Use Case: Entrada movement, creating the item on first receipt."""

from dataclasses import dataclass, field

from stockledger.application.dto.requests import ReceiveStockRequest
from stockledger.application.dto.responses import (
    ReceiveStockResponse,
    item_to_response,
    movement_to_response,
    presentation_to_response,
)
from stockledger.config import get_logger
from stockledger.core.entities import MovementEntry, MovementType, Presentation, StockItem
from stockledger.core.exceptions import StockItemNotFoundError
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import PresentationCatalog, StockLedger, pick_atomic

logger = get_logger(__name__)

DEFAULT_RECEIPT_REASON = "Ingreso de mercaderia"


@dataclass
class ReceiveStockResult:
    """Result of receiving stock."""

    stock_item: StockItem
    movement: MovementEntry
    presentations: list[Presentation] = field(default_factory=list)
    created: bool = False  # True if a new stock item was created


class ReceiveStockUseCase:
    """
    Receive stock (Entrada movement).

    A receipt for a new product creates the stock item with its atomic
    presentation and, when the goods arrive in cases, a default case
    presentation. Restocking an existing item adds a case presentation only
    when it has none of that size yet.
    """

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        ledger: StockLedger | None = None,
        catalog: PresentationCatalog | None = None,
    ):
        self._stock_store = stock_store
        self._ledger = ledger
        self._catalog = catalog

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    async def _get_ledger(self) -> StockLedger:
        if self._ledger is None:
            from stockledger.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger(self._stock_store)
        return self._ledger

    async def _get_catalog(self) -> PresentationCatalog:
        if self._catalog is None:
            from stockledger.application.services import get_presentation_catalog

            self._catalog = await get_presentation_catalog(self._stock_store)
        return self._catalog

    async def execute(self, request: ReceiveStockRequest) -> ReceiveStockResult:
        """Execute receive stock use case."""
        logger.info(
            "receive_stock_started",
            stock_item_id=request.stock_item_id,
            name=request.name,
            units=request.total_units,
        )

        ledger = await self._get_ledger()
        catalog = await self._get_catalog()
        store = await self._get_stock_store()

        # 1. Get or create the stock item
        created = False
        if request.stock_item_id is not None:
            item = await store.get_item(request.stock_item_id)
            if item is None:
                raise StockItemNotFoundError(request.stock_item_id)
        else:
            item = await store.create_item(
                StockItem(
                    name=request.name,  # type: ignore[arg-type]
                    brand=request.brand,
                    model=request.model,
                    code=request.code,
                    load_code=request.load_code,
                    base_price=request.base_price,
                    currency=request.currency,
                )
            )
            created = True

        item_id: int = item.id  # type: ignore[assignment]

        # 2. Make sure the presentations of this receipt exist
        presentations = await catalog.list_presentations(item_id)
        has_default = any(p.is_default for p in presentations)
        has_case = request.units_per_case > 1

        if pick_atomic(presentations) is None:
            await catalog.add_presentation(
                item_id,
                1,
                price=request.unit_price if request.unit_price is not None else item.base_price,
                currency=request.currency,
                is_default=not has_default and not has_case,
            )
        if has_case and not any(
            p.conversion_factor == request.units_per_case for p in presentations
        ):
            await catalog.add_presentation(
                item_id,
                request.units_per_case,
                price=request.case_price,
                currency=request.currency,
                is_default=not has_default,
            )
        presentations = await catalog.list_presentations(item_id)

        # 3. Record the Entrada
        movement = await ledger.record(
            item_id,
            MovementType.ENTRADA,
            request.total_units,
            actor=request.actor,
            reason=request.reason or DEFAULT_RECEIPT_REASON,
            load_code=request.load_code or item.load_code,
            unit_cost=request.unit_cost,
            dest_location=request.dest_location,
            external_reference=request.external_reference,
            invoice_number=request.invoice_number,
        )

        item = item.model_copy(
            update={
                "total_units_available": movement.balance_after,
                "updated_at": movement.timestamp,
            }
        )

        logger.info(
            "receive_stock_complete",
            stock_item_id=item_id,
            created=created,
            units=request.total_units,
            balance_after=movement.balance_after,
        )

        return ReceiveStockResult(
            stock_item=item,
            movement=movement,
            presentations=presentations,
            created=created,
        )

    def to_response(self, result: ReceiveStockResult) -> ReceiveStockResponse:
        """Convert result to API response."""
        return ReceiveStockResponse(
            stock_item=item_to_response(result.stock_item),
            presentations=[presentation_to_response(p) for p in result.presentations],
            movement=movement_to_response(result.movement),
            created=result.created,
        )
