"""
SQLite implementation of stock storage.

Handles stock items, presentations, open boxes and the append-only movement
ledger. Every ledger append runs in one transaction together with the balance
update and the open box change it implies.
"""

from collections.abc import AsyncIterator
from datetime import UTC, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities import (
    MovementEntry,
    MovementFilter,
    MovementType,
    OpenBox,
    Presentation,
    StockItem,
)
from stockledger.core.exceptions import (
    ConcurrentModificationError,
    DatabaseError,
    StockItemNotFoundError,
)
from stockledger.core.interfaces import IStockStore, OpenBoxChange
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

# Rows fetched per round trip while iterating the ledger
MOVEMENT_BATCH_SIZE = 200


def _ts(value: datetime) -> str:
    """Naive UTC ISO timestamp; fixed width so text order is time order."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds")


def _escape_like(text: str) -> str:
    """Match ``text`` literally in a LIKE pattern with ESCAPE '\\'."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteStockStore(IStockStore):
    """SQLite implementation of stock storage."""

    # Stock item operations

    async def create_item(self, item: StockItem) -> StockItem:
        """Create a new stock item. Balances only change through the ledger."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO stock_items (
                    name, brand, model, code, load_code, total_units_available,
                    base_price, currency, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, ?, ?, ?, ?)
                """,
                (
                    item.name,
                    item.brand,
                    item.model,
                    item.code,
                    item.load_code,
                    item.base_price,
                    item.currency,
                    _ts(item.created_at),
                    _ts(item.updated_at),
                ),
            )
            created = item.model_copy(
                update={"id": cursor.lastrowid, "total_units_available": 0}
            )
            logger.info("stock_item_created", stock_item_id=created.id, name=created.name)
            return created

    async def get_item(self, item_id: int) -> StockItem | None:
        """Get stock item by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_items WHERE id = ?", (item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_item(row)

    async def list_items(self, limit: int = 100, offset: int = 0) -> list[StockItem]:
        """List stock items with pagination."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_items ORDER BY id LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]

    # Presentation operations

    async def add_presentation(self, presentation: Presentation) -> Presentation:
        """Store a presentation. A default presentation clears the previous default."""
        async with get_transaction() as conn:
            if presentation.is_default:
                await conn.execute(
                    "UPDATE presentations SET is_default = 0 WHERE stock_item_id = ?",
                    (presentation.stock_item_id,),
                )
            cursor = await conn.execute(
                """
                INSERT INTO presentations (
                    stock_item_id, name, conversion_factor, price, currency, is_default
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    presentation.stock_item_id,
                    presentation.name,
                    presentation.conversion_factor,
                    presentation.price,
                    presentation.currency,
                    1 if presentation.is_default else 0,
                ),
            )
            return presentation.model_copy(update={"id": cursor.lastrowid})

    async def get_presentation(self, presentation_id: int) -> Presentation | None:
        """Get presentation by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM presentations WHERE id = ?", (presentation_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_presentation(row)

    async def list_presentations(self, stock_item_id: int) -> list[Presentation]:
        """List presentations of an item ordered by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM presentations WHERE stock_item_id = ? ORDER BY id",
                (stock_item_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_presentation(row) for row in rows]

    # Open box operations

    async def get_open_box(self, stock_item_id: int) -> OpenBox | None:
        """Get the open box of an item, if any."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM open_boxes WHERE stock_item_id = ?", (stock_item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_open_box(row)

    # Ledger operations

    async def commit_movement(
        self,
        entry: MovementEntry,
        open_box_change: OpenBoxChange | None = None,
    ) -> MovementEntry:
        """
        Append a ledger entry, move the item balance and apply the open box
        change in one transaction.

        The balance update is conditional on the stored balance still being
        ``entry.balance_before``.
        """
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE stock_items SET total_units_available = ?, updated_at = ?
                    WHERE id = ? AND total_units_available = ?
                    """,
                    (
                        entry.balance_after,
                        _ts(entry.timestamp),
                        entry.stock_item_id,
                        entry.balance_before,
                    ),
                )
                if cursor.rowcount == 0:
                    cursor = await conn.execute(
                        "SELECT total_units_available FROM stock_items WHERE id = ?",
                        (entry.stock_item_id,),
                    )
                    row = await cursor.fetchone()
                    if row is None:
                        raise StockItemNotFoundError(entry.stock_item_id)
                    raise ConcurrentModificationError(
                        entry.stock_item_id, entry.balance_before, row[0]
                    )

                cursor = await conn.execute(
                    """
                    INSERT INTO stock_movements (
                        timestamp, movement_type, stock_item_id, quantity_delta,
                        balance_before, balance_after, actor, reason,
                        origin_location, dest_location, external_reference,
                        client_or_destination, invoice_number, load_code, unit_cost
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        _ts(entry.timestamp),
                        entry.movement_type.value,
                        entry.stock_item_id,
                        entry.quantity_delta,
                        entry.balance_before,
                        entry.balance_after,
                        entry.actor,
                        entry.reason,
                        entry.origin_location,
                        entry.dest_location,
                        entry.external_reference,
                        entry.client_or_destination,
                        entry.invoice_number,
                        entry.load_code,
                        entry.unit_cost,
                    ),
                )
                stored = entry.model_copy(update={"id": cursor.lastrowid})

                if open_box_change is not None:
                    await self._apply_open_box_change(conn, open_box_change)

                return stored
        except aiosqlite.Error as e:
            logger.error(
                "commit_movement_failed",
                stock_item_id=entry.stock_item_id,
                error=str(e),
            )
            raise DatabaseError("commit_movement", str(e)) from e

    async def _apply_open_box_change(
        self, conn: aiosqlite.Connection, change: OpenBoxChange
    ) -> None:
        box = change.box
        if box is None or not box.is_open:
            await conn.execute(
                "DELETE FROM open_boxes WHERE stock_item_id = ?",
                (change.stock_item_id,),
            )
            return

        await conn.execute(
            """
            INSERT INTO open_boxes (
                stock_item_id, presentation_id, units_original, units_remaining, opened_at
            ) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(stock_item_id) DO UPDATE SET
                presentation_id = excluded.presentation_id,
                units_original = excluded.units_original,
                units_remaining = excluded.units_remaining,
                opened_at = excluded.opened_at
            """,
            (
                change.stock_item_id,
                box.presentation_id,
                box.units_original,
                box.units_remaining,
                _ts(box.opened_at),
            ),
        )

    async def iter_movements(
        self, filters: MovementFilter | None = None
    ) -> AsyncIterator[MovementEntry]:
        """
        Iterate ledger entries matching the filters, most recent first.

        Pages through the table with a (timestamp, id) cursor and releases the
        connection between pages.
        """
        filters = filters or MovementFilter()
        conditions: list[str] = []
        params: list = []

        if filters.date_from is not None:
            conditions.append("m.timestamp >= ?")
            params.append(_ts(filters.date_from))
        if filters.date_to is not None:
            conditions.append("m.timestamp <= ?")
            params.append(_ts(filters.date_to))
        if filters.movement_type is not None:
            conditions.append("m.movement_type = ?")
            params.append(filters.movement_type.value)
        if filters.stock_item_id is not None:
            conditions.append("m.stock_item_id = ?")
            params.append(filters.stock_item_id)
        if filters.search_text:
            pattern = f"%{_escape_like(filters.search_text.lower())}%"
            conditions.append(
                r"""(
                    LOWER(i.name) LIKE ? ESCAPE '\'
                    OR LOWER(COALESCE(m.load_code, '')) LIKE ? ESCAPE '\'
                    OR LOWER(m.actor) LIKE ? ESCAPE '\'
                    OR LOWER(COALESCE(m.reason, '')) LIKE ? ESCAPE '\'
                    OR LOWER(COALESCE(m.client_or_destination, '')) LIKE ? ESCAPE '\'
                )"""
            )
            params.extend([pattern] * 5)

        remaining = filters.limit
        cursor_key: tuple[str, int] | None = None

        while remaining is None or remaining > 0:
            page_conditions = list(conditions)
            page_params = list(params)
            if cursor_key is not None:
                page_conditions.append(
                    "(m.timestamp < ? OR (m.timestamp = ? AND m.id < ?))"
                )
                page_params.extend([cursor_key[0], cursor_key[0], cursor_key[1]])

            batch = MOVEMENT_BATCH_SIZE
            if remaining is not None:
                batch = min(batch, remaining)

            where = f"WHERE {' AND '.join(page_conditions)}" if page_conditions else ""
            async with get_connection() as conn:
                cursor = await conn.execute(
                    f"""
                    SELECT m.* FROM stock_movements m
                    JOIN stock_items i ON i.id = m.stock_item_id
                    {where}
                    ORDER BY m.timestamp DESC, m.id DESC
                    LIMIT ?
                    """,
                    (*page_params, batch),
                )
                rows = await cursor.fetchall()

            if not rows:
                return

            for row in rows:
                yield self._row_to_movement(row)

            last = rows[-1]
            cursor_key = (last["timestamp"], last["id"])
            if remaining is not None:
                remaining -= len(rows)
            if len(rows) < batch:
                return

    async def latest_balance(self, stock_item_id: int) -> int | None:
        """Balance after the most recently appended entry of an item."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT balance_after FROM stock_movements
                WHERE stock_item_id = ?
                ORDER BY id DESC LIMIT 1
                """,
                (stock_item_id,),
            )
            row = await cursor.fetchone()
            return row[0] if row else None

    # Helper methods

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> StockItem:
        """Convert database row to StockItem entity."""
        return StockItem(
            id=row["id"],
            name=row["name"],
            brand=row["brand"],
            model=row["model"],
            code=row["code"],
            load_code=row["load_code"],
            total_units_available=row["total_units_available"],
            base_price=row["base_price"],
            currency=row["currency"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_presentation(row: aiosqlite.Row) -> Presentation:
        return Presentation(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            name=row["name"],
            conversion_factor=row["conversion_factor"],
            price=row["price"],
            currency=row["currency"],
            is_default=bool(row["is_default"]),
        )

    @staticmethod
    def _row_to_open_box(row: aiosqlite.Row) -> OpenBox:
        return OpenBox(
            stock_item_id=row["stock_item_id"],
            presentation_id=row["presentation_id"],
            units_original=row["units_original"],
            units_remaining=row["units_remaining"],
            opened_at=datetime.fromisoformat(row["opened_at"]),
        )

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> MovementEntry:
        """Convert database row to MovementEntry entity."""
        return MovementEntry(
            id=row["id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            movement_type=MovementType(row["movement_type"]),
            stock_item_id=row["stock_item_id"],
            quantity_delta=row["quantity_delta"],
            balance_before=row["balance_before"],
            balance_after=row["balance_after"],
            actor=row["actor"],
            reason=row["reason"],
            origin_location=row["origin_location"],
            dest_location=row["dest_location"],
            external_reference=row["external_reference"],
            client_or_destination=row["client_or_destination"],
            invoice_number=row["invoice_number"],
            load_code=row["load_code"],
            unit_cost=row["unit_cost"],
        )
