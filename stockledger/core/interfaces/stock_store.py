"""Abstract interface for stock storage."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass

from stockledger.core.entities.stock import (
    MovementEntry,
    MovementFilter,
    OpenBox,
    Presentation,
    StockItem,
)


@dataclass(frozen=True)
class OpenBoxChange:
    """New open box state for an item, persisted together with a ledger entry.

    ``box`` is None (or exhausted) when the item's open box was closed.
    """

    stock_item_id: int
    box: OpenBox | None


class IStockStore(ABC):
    """Interface for stock item, presentation, open box and ledger persistence."""

    # Stock items

    @abstractmethod
    async def create_item(self, item: StockItem) -> StockItem:
        """Create a new stock item with a zero balance."""
        pass

    @abstractmethod
    async def get_item(self, item_id: int) -> StockItem | None:
        """Get stock item by ID."""
        pass

    @abstractmethod
    async def list_items(self, limit: int = 100, offset: int = 0) -> list[StockItem]:
        """List stock items with pagination."""
        pass

    # Presentations

    @abstractmethod
    async def add_presentation(self, presentation: Presentation) -> Presentation:
        """Store a presentation. A default presentation clears the previous default."""
        pass

    @abstractmethod
    async def get_presentation(self, presentation_id: int) -> Presentation | None:
        """Get presentation by ID."""
        pass

    @abstractmethod
    async def list_presentations(self, stock_item_id: int) -> list[Presentation]:
        """List presentations of an item ordered by ID."""
        pass

    # Open boxes

    @abstractmethod
    async def get_open_box(self, stock_item_id: int) -> OpenBox | None:
        """Get the open box of an item, if any."""
        pass

    # Ledger

    @abstractmethod
    async def commit_movement(
        self,
        entry: MovementEntry,
        open_box_change: OpenBoxChange | None = None,
    ) -> MovementEntry:
        """
        Atomically append a ledger entry, set the item balance to
        ``entry.balance_after`` and apply the open box change.

        Raises ConcurrentModificationError if the stored balance no longer
        equals ``entry.balance_before``. Nothing is persisted on failure.
        """
        pass

    @abstractmethod
    def iter_movements(
        self, filters: MovementFilter | None = None
    ) -> AsyncIterator[MovementEntry]:
        """Iterate ledger entries matching the filters, most recent first."""
        pass

    @abstractmethod
    async def latest_balance(self, stock_item_id: int) -> int | None:
        """Balance after the most recently appended entry of an item."""
        pass
