"""
Presentation catalog service.

Defines, per stock item, the sellable units (the atomic unit plus optional
case sizes) with their conversion factors and prices.
"""

from stockledger.config import get_logger
from stockledger.core.entities.stock import Presentation
from stockledger.core.exceptions import (
    DuplicateAtomicPresentationError,
    InvalidConversionFactorError,
    InvalidPresentationError,
    StockItemNotFoundError,
)
from stockledger.core.interfaces.stock_store import IStockStore

logger = get_logger(__name__)

ATOMIC_NAME = "Unidad"


def default_presentation_name(conversion_factor: int) -> str:
    """Display name used when a presentation is added without one."""
    if conversion_factor == 1:
        return ATOMIC_NAME
    return f"Caja x{conversion_factor}"


def pick_default(presentations: list[Presentation]) -> Presentation | None:
    """The presentation marked default, else the atomic one."""
    for presentation in presentations:
        if presentation.is_default:
            return presentation
    return pick_atomic(presentations)


def pick_atomic(presentations: list[Presentation]) -> Presentation | None:
    for presentation in presentations:
        if presentation.is_atomic:
            return presentation
    return None


def pick_case(presentations: list[Presentation]) -> Presentation | None:
    """
    The presentation broken open by loose-unit sales.

    The default presentation when it holds more than one unit, otherwise the
    largest one. None when the item is only sold by the unit.
    """
    default = pick_default(presentations)
    if default is not None and default.conversion_factor > 1:
        return default
    cases = [p for p in presentations if p.conversion_factor > 1]
    if not cases:
        return None
    # Ties resolved by lowest id for a stable choice
    return max(cases, key=lambda p: (p.conversion_factor, -(p.id or 0)))


class PresentationCatalog:
    """
    Service for managing the presentations of stock items.

    Invariants enforced on add:
    - conversion_factor is a positive integer
    - at most one atomic (factor 1) presentation per item
    - at most one default presentation per item
    """

    def __init__(self, stock_store: IStockStore) -> None:
        self._store = stock_store

    async def list_presentations(self, stock_item_id: int) -> list[Presentation]:
        """List presentations of an item in stable (id) order."""
        presentations = await self._store.list_presentations(stock_item_id)
        return sorted(presentations, key=lambda p: p.id or 0)

    async def get_default(self, stock_item_id: int) -> Presentation:
        """Get the default presentation, falling back to the atomic one."""
        presentations = await self.list_presentations(stock_item_id)
        default = pick_default(presentations)
        if default is None:
            raise InvalidPresentationError(
                stock_item_id, None, "item has no atomic presentation"
            )
        return default

    async def get_atomic(self, stock_item_id: int) -> Presentation:
        presentations = await self.list_presentations(stock_item_id)
        atomic = pick_atomic(presentations)
        if atomic is None:
            raise InvalidPresentationError(
                stock_item_id, None, "item has no atomic presentation"
            )
        return atomic

    async def get_case(self, stock_item_id: int) -> Presentation | None:
        return pick_case(await self.list_presentations(stock_item_id))

    async def get_presentation(
        self, stock_item_id: int, presentation_id: int
    ) -> Presentation:
        """Get a presentation, checking it belongs to the item."""
        presentation = await self._store.get_presentation(presentation_id)
        if presentation is None:
            raise InvalidPresentationError(
                stock_item_id, presentation_id, "presentation not found"
            )
        if presentation.stock_item_id != stock_item_id:
            raise InvalidPresentationError(
                stock_item_id,
                presentation_id,
                "presentation belongs to another stock item",
            )
        return presentation

    async def add_presentation(
        self,
        stock_item_id: int,
        conversion_factor: int,
        price: float | None = None,
        currency: str = "PYG",
        name: str | None = None,
        is_default: bool = False,
    ) -> Presentation:
        """
        Add a presentation to a stock item.

        Raises:
            InvalidConversionFactorError: factor is not an integer >= 1
            DuplicateAtomicPresentationError: a factor-1 presentation exists
            StockItemNotFoundError: the item does not exist
        """
        if (
            isinstance(conversion_factor, bool)
            or not isinstance(conversion_factor, int)
            or conversion_factor < 1
        ):
            raise InvalidConversionFactorError(conversion_factor)

        if await self._store.get_item(stock_item_id) is None:
            raise StockItemNotFoundError(stock_item_id)

        existing = await self.list_presentations(stock_item_id)
        if conversion_factor == 1:
            atomic = pick_atomic(existing)
            if atomic is not None:
                raise DuplicateAtomicPresentationError(stock_item_id, atomic.id)

        presentation = await self._store.add_presentation(
            Presentation(
                stock_item_id=stock_item_id,
                name=name or default_presentation_name(conversion_factor),
                conversion_factor=conversion_factor,
                price=price,
                currency=currency,
                is_default=is_default,
            )
        )
        logger.info(
            "presentation_added",
            stock_item_id=stock_item_id,
            presentation_id=presentation.id,
            conversion_factor=conversion_factor,
            is_default=is_default,
        )
        return presentation
