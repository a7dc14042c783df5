"""
Open box tracking.

Each stock item moves through Closed -> Open -> Exhausted, and an exhausted
box closes itself. The tracker works on a view of the open boxes loaded from
the store; its changes are persisted only together with the ledger entry of
the movement that caused them.
"""

from datetime import datetime

from stockledger.core.entities.stock import OpenBox, Presentation
from stockledger.core.exceptions import AlreadyOpenError, OverdrawError
from stockledger.core.interfaces.stock_store import IStockStore, OpenBoxChange


class OpenBoxTracker:
    """Tracks the single partially consumed case per stock item."""

    def __init__(self, boxes: dict[int, OpenBox] | None = None) -> None:
        self._boxes: dict[int, OpenBox] = {
            item_id: box for item_id, box in (boxes or {}).items() if box.is_open
        }
        self._dirty: set[int] = set()

    @classmethod
    async def load(cls, stock_store: IStockStore, *stock_item_ids: int) -> "OpenBoxTracker":
        """Build a tracker over the stored open boxes of the given items."""
        boxes: dict[int, OpenBox] = {}
        for item_id in stock_item_ids:
            box = await stock_store.get_open_box(item_id)
            if box is not None:
                boxes[item_id] = box
        return cls(boxes)

    def get(self, stock_item_id: int) -> OpenBox | None:
        return self._boxes.get(stock_item_id)

    def current_remainder(self, stock_item_id: int) -> int:
        """Units left in the open box, 0 when closed."""
        box = self._boxes.get(stock_item_id)
        return box.units_remaining if box is not None else 0

    def open_box(self, stock_item_id: int, presentation: Presentation) -> OpenBox:
        """
        Break a sealed case of ``presentation``.

        Raises:
            AlreadyOpenError: the item still has units in an open box
        """
        current = self._boxes.get(stock_item_id)
        if current is not None:
            raise AlreadyOpenError(stock_item_id, current.units_remaining)

        box = OpenBox(
            stock_item_id=stock_item_id,
            presentation_id=presentation.id,  # type: ignore[arg-type]
            units_original=presentation.conversion_factor,
            units_remaining=presentation.conversion_factor,
            opened_at=datetime.utcnow(),
        )
        self._boxes[stock_item_id] = box
        self._dirty.add(stock_item_id)
        return box

    def consume_units(self, stock_item_id: int, n: int) -> int:
        """
        Take ``n`` units from the open box and return what remains.

        Raises:
            OverdrawError: ``n`` exceeds the remaining units
        """
        remaining = self.current_remainder(stock_item_id)
        if n < 0 or n > remaining:
            raise OverdrawError(stock_item_id, n, remaining)
        if n == 0:
            return remaining

        box = self._boxes[stock_item_id]
        remaining -= n
        if remaining == 0:
            del self._boxes[stock_item_id]
        else:
            self._boxes[stock_item_id] = box.model_copy(
                update={"units_remaining": remaining}
            )
        self._dirty.add(stock_item_id)
        return remaining

    def pending_change(self, stock_item_id: int) -> OpenBoxChange | None:
        """The state to persist for an item, or None if it was not touched."""
        if stock_item_id not in self._dirty:
            return None
        return OpenBoxChange(
            stock_item_id=stock_item_id,
            box=self._boxes.get(stock_item_id),
        )
