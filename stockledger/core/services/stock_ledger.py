"""
Stock ledger service.

Append-only log of every balance-affecting event and the source of truth for
current balances. Entries are validated on append and never edited; a
correction is a new Ajuste entry.
"""

import asyncio
import csv
import io
from collections import Counter
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from stockledger.config import get_logger
from stockledger.core.entities.stock import (
    MovementEntry,
    MovementFilter,
    MovementType,
    StockItem,
    delta_sign_allowed,
)
from stockledger.core.exceptions import (
    InsufficientStockError,
    LedgerIntegrityViolationError,
    StockItemNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.stock_store import IStockStore, OpenBoxChange
from stockledger.core.services.open_box_tracker import OpenBoxTracker

logger = get_logger(__name__)

EXPORT_HEADERS = [
    "Fecha",
    "Tipo",
    "Item",
    "Codigo",
    "Cantidad",
    "Stock Anterior",
    "Stock Nuevo",
    "Origen",
    "Destino",
    "Usuario",
    "Motivo",
    "Cliente",
    "Factura",
    "Referencia",
]


class ItemLockRegistry:
    """One asyncio lock per stock item. Serializes read-modify-write of balances."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}

    def lock(self, stock_item_id: int) -> asyncio.Lock:
        lock = self._locks.get(stock_item_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[stock_item_id] = lock
        return lock


@dataclass
class MovementTypeStats:
    count: int = 0
    units: int = 0


@dataclass
class LedgerStatistics:
    """Traceability summary over a filtered ledger range."""

    total_movements: int = 0
    by_type: dict[str, MovementTypeStats] = field(default_factory=dict)
    most_active_items: list[tuple[int, int]] = field(default_factory=list)


def signed_delta(movement_type: MovementType, quantity_delta: int) -> int:
    """Return the delta after checking its sign is allowed for the type."""
    if not delta_sign_allowed(movement_type, quantity_delta):
        raise ValueError(
            f"delta {quantity_delta} not allowed for {movement_type.value}"
        )
    return quantity_delta


class StockLedger:
    """
    Append-only stock movement ledger.

    Reads (query, export, balances) take no locks and only ever see committed
    entries. Writes for one item are serialized through ``locks``, which the
    sale engine shares.
    """

    def __init__(
        self,
        stock_store: IStockStore,
        locks: ItemLockRegistry | None = None,
    ) -> None:
        self._store = stock_store
        self.locks = locks or ItemLockRegistry()

    @staticmethod
    def validate(entry: MovementEntry) -> None:
        """
        Check the arithmetic of an entry.

        Raises:
            LedgerIntegrityViolationError: on any mismatch
        """
        try:
            delta = signed_delta(entry.movement_type, entry.quantity_delta)
        except ValueError as e:
            raise LedgerIntegrityViolationError(
                entry.stock_item_id,
                str(e),
                movement_type=entry.movement_type.value,
                quantity_delta=entry.quantity_delta,
            ) from e

        if entry.balance_after != entry.balance_before + delta:
            raise LedgerIntegrityViolationError(
                entry.stock_item_id,
                "balance_after does not equal balance_before plus delta",
                balance_before=entry.balance_before,
                balance_after=entry.balance_after,
                quantity_delta=delta,
            )
        if entry.balance_before < 0 or entry.balance_after < 0:
            raise LedgerIntegrityViolationError(
                entry.stock_item_id,
                "balances cannot be negative",
                balance_before=entry.balance_before,
                balance_after=entry.balance_after,
            )

    async def append(
        self,
        entry: MovementEntry,
        open_box_change: OpenBoxChange | None = None,
    ) -> MovementEntry:
        """
        Validate and persist an entry, with any open box change, atomically.

        Callers must hold ``locks.lock(entry.stock_item_id)``.
        """
        try:
            self.validate(entry)
        except LedgerIntegrityViolationError as e:
            logger.error("ledger_integrity_violation", **e.details)
            raise

        stored = await self._store.commit_movement(entry, open_box_change)
        logger.info(
            "movement_appended",
            movement_id=stored.id,
            stock_item_id=stored.stock_item_id,
            type=stored.movement_type.value,
            delta=stored.quantity_delta,
            balance_after=stored.balance_after,
        )
        return stored

    async def record(
        self,
        stock_item_id: int,
        movement_type: MovementType,
        quantity_delta: int,
        **metadata: Any,
    ) -> MovementEntry:
        """
        Record a movement against the item's current balance.

        Used for Entrada, Ajuste, Transferencia and Asignacion events. When a
        decrease leaves fewer units than the open box holds, the open box is
        drawn down in the same atomic step.
        """
        if not delta_sign_allowed(movement_type, quantity_delta):
            raise ValidationError(
                "quantity_delta",
                f"sign not allowed for {movement_type.value} movements",
                quantity_delta,
            )

        async with self.locks.lock(stock_item_id):
            item = await self._store.get_item(stock_item_id)
            if item is None:
                raise StockItemNotFoundError(stock_item_id)

            before = item.total_units_available
            after = before + quantity_delta
            if after < 0:
                raise InsufficientStockError(
                    stock_item_id, requested=-quantity_delta, available=before
                )

            change = None
            tracker = await OpenBoxTracker.load(self._store, stock_item_id)
            excess = tracker.current_remainder(stock_item_id) - after
            if excess > 0:
                tracker.consume_units(stock_item_id, excess)
                change = tracker.pending_change(stock_item_id)

            entry = MovementEntry(
                movement_type=movement_type,
                stock_item_id=stock_item_id,
                quantity_delta=quantity_delta,
                balance_before=before,
                balance_after=after,
                **metadata,
            )
            return await self.append(entry, change)

    async def query(
        self, filters: MovementFilter | None = None
    ) -> AsyncIterator[MovementEntry]:
        """
        Lazily yield matching entries, most recent first.

        Each call re-evaluates against the current ledger.
        """
        async for entry in self._store.iter_movements(filters):
            yield entry

    async def export(
        self,
        filters: MovementFilter | None = None,
        format: str = "csv",
    ) -> str:
        """Materialize the filtered, ordered result set as CSV text."""
        if format != "csv":
            raise ValidationError("format", "only csv export is supported", format)

        items: dict[int, StockItem | None] = {}
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_HEADERS)

        rows = 0
        async for entry in self.query(filters):
            if entry.stock_item_id not in items:
                items[entry.stock_item_id] = await self._store.get_item(
                    entry.stock_item_id
                )
            item = items[entry.stock_item_id]
            writer.writerow(
                [
                    entry.timestamp.isoformat(timespec="seconds"),
                    entry.movement_type.value,
                    item.name if item else "",
                    entry.load_code or (item.code if item else "") or "",
                    entry.quantity_delta,
                    entry.balance_before,
                    entry.balance_after,
                    entry.origin_location or "",
                    entry.dest_location or "",
                    entry.actor,
                    entry.reason or "",
                    entry.client_or_destination or "",
                    entry.invoice_number or "",
                    entry.external_reference or "",
                ]
            )
            rows += 1

        logger.info("movements_exported", rows=rows, format=format)
        return buffer.getvalue()

    async def current_balance(self, stock_item_id: int) -> int:
        """Balance after the latest entry of the item, 0 with no history."""
        balance = await self._store.latest_balance(stock_item_id)
        return balance if balance is not None else 0

    async def replay_balance(self, stock_item_id: int) -> int:
        """Recompute the balance as the running sum of all signed deltas."""
        total = 0
        async for entry in self.query(MovementFilter(stock_item_id=stock_item_id)):
            total += signed_delta(entry.movement_type, entry.quantity_delta)
        return total

    async def statistics(
        self,
        filters: MovementFilter | None = None,
        top: int = 5,
    ) -> LedgerStatistics:
        """Counts and unit totals per movement type, plus the most active items."""
        stats = LedgerStatistics(
            by_type={t.value: MovementTypeStats() for t in MovementType}
        )
        activity: Counter[int] = Counter()

        async for entry in self.query(filters):
            stats.total_movements += 1
            bucket = stats.by_type[entry.movement_type.value]
            bucket.count += 1
            bucket.units += entry.quantity
            activity[entry.stock_item_id] += 1

        stats.most_active_items = activity.most_common(top)
        return stats
