"""Tests for StockLedger."""

import csv
import io
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities import MovementEntry, MovementFilter, MovementType, SaleRequest, SaleType
from stockledger.core.exceptions import (
    InsufficientStockError,
    LedgerIntegrityViolationError,
    StockItemNotFoundError,
    ValidationError,
)
from stockledger.core.services import ItemLockRegistry, SaleEngine, StockLedger, signed_delta
from stockledger.core.services.stock_ledger import EXPORT_HEADERS


def _entry(**overrides) -> MovementEntry:
    data = {
        "movement_type": MovementType.ENTRADA,
        "stock_item_id": 1,
        "quantity_delta": 10,
        "balance_before": 0,
        "balance_after": 10,
    }
    data.update(overrides)
    return MovementEntry(**data)


class TestValidate:
    def test_valid_entry(self):
        StockLedger.validate(_entry())

    def test_arithmetic_mismatch(self):
        with pytest.raises(LedgerIntegrityViolationError):
            StockLedger.validate(_entry(balance_after=11))

    def test_wrong_sign_for_type(self):
        with pytest.raises(LedgerIntegrityViolationError):
            StockLedger.validate(
                _entry(movement_type=MovementType.SALIDA, balance_before=0, balance_after=10)
            )

    def test_negative_balance(self):
        with pytest.raises(LedgerIntegrityViolationError):
            StockLedger.validate(
                _entry(
                    movement_type=MovementType.AJUSTE,
                    quantity_delta=-5,
                    balance_before=3,
                    balance_after=-2,
                )
            )

    def test_signed_delta(self):
        assert signed_delta(MovementType.SALIDA, -3) == -3
        with pytest.raises(ValueError):
            signed_delta(MovementType.ENTRADA, 0)

    async def test_append_rejects_before_touching_store(self):
        store = AsyncMock()
        ledger = StockLedger(store)

        with pytest.raises(LedgerIntegrityViolationError):
            await ledger.append(_entry(balance_after=9))
        store.commit_movement.assert_not_awaited()


class TestItemLockRegistry:
    def test_same_lock_per_item(self):
        locks = ItemLockRegistry()
        assert locks.lock(1) is locks.lock(1)
        assert locks.lock(1) is not locks.lock(2)


class TestRecord:
    async def test_entrada_updates_balance(self, ledger, make_item, stock_store):
        item, _ = await make_item(units=0)

        entry = await ledger.record(item.id, MovementType.ENTRADA, 30, actor="ana", load_code="L-1")

        assert entry.id is not None
        assert entry.balance_before == 0
        assert entry.balance_after == 30
        assert entry.actor == "ana"
        assert (await stock_store.get_item(item.id)).total_units_available == 30
        assert await ledger.current_balance(item.id) == 30

    async def test_rejects_wrong_sign(self, ledger, make_item):
        item, _ = await make_item(units=10)

        with pytest.raises(ValidationError):
            await ledger.record(item.id, MovementType.ENTRADA, -3)

    async def test_rejects_overdraft(self, ledger, make_item):
        item, _ = await make_item(units=10)

        with pytest.raises(InsufficientStockError):
            await ledger.record(item.id, MovementType.AJUSTE, -11)
        assert await ledger.current_balance(item.id) == 10

    async def test_unknown_item(self, ledger, stock_store):
        with pytest.raises(StockItemNotFoundError):
            await ledger.record(999, MovementType.ENTRADA, 1)

    async def test_transfer_without_quantity_change(self, ledger, make_item):
        item, _ = await make_item(units=10)

        entry = await ledger.record(
            item.id,
            MovementType.TRANSFERENCIA,
            0,
            origin_location="Deposito",
            dest_location="Tienda",
        )

        assert entry.balance_after == 10
        assert entry.dest_location == "Tienda"

    async def test_negative_adjustment_draws_down_open_box(self, ledger, make_item, stock_store):
        item, case = await make_item(units=30)
        engine = SaleEngine(stock_store, ledger)
        await engine.commit(
            SaleRequest(stock_item_id=item.id, sale_type=SaleType.LOOSE_UNITS, quantity=5)
        )
        assert (await stock_store.get_open_box(item.id)).units_remaining == 7

        # 25 on hand, 7 of them loose: leaving 4 must take 3 from the open box
        await ledger.record(item.id, MovementType.AJUSTE, -21, reason="merma")

        box = await stock_store.get_open_box(item.id)
        assert box.units_remaining == 4
        assert await ledger.current_balance(item.id) == 4

    async def test_adjustment_to_zero_closes_open_box(self, ledger, make_item, stock_store):
        item, _ = await make_item(units=30)
        engine = SaleEngine(stock_store, ledger)
        await engine.commit(
            SaleRequest(stock_item_id=item.id, sale_type=SaleType.LOOSE_UNITS, quantity=5)
        )

        await ledger.record(item.id, MovementType.AJUSTE, -25)

        assert await stock_store.get_open_box(item.id) is None


class TestQuery:
    async def test_most_recent_first(self, ledger, make_item):
        item, _ = await make_item(units=10)
        await ledger.record(item.id, MovementType.ENTRADA, 5)
        await ledger.record(item.id, MovementType.AJUSTE, -2)

        entries = [e async for e in ledger.query()]

        assert [e.quantity_delta for e in entries] == [-2, 5, 10]

    async def test_filters_combine(self, ledger, make_item):
        a, _ = await make_item(units=10, name="Aceite")
        b, _ = await make_item(units=20, name="Arroz")
        await ledger.record(a.id, MovementType.AJUSTE, -1, actor="juan")
        await ledger.record(b.id, MovementType.AJUSTE, -1, actor="maria")

        by_type = [e async for e in ledger.query(MovementFilter(movement_type=MovementType.AJUSTE))]
        by_item = [e async for e in ledger.query(MovementFilter(stock_item_id=b.id))]
        by_text = [e async for e in ledger.query(MovementFilter(search_text="ARROZ"))]
        by_actor = [
            e
            async for e in ledger.query(
                MovementFilter(movement_type=MovementType.AJUSTE, search_text="juan")
            )
        ]

        assert len(by_type) == 2
        assert {e.stock_item_id for e in by_item} == {b.id}
        assert len(by_item) == 2
        assert {e.stock_item_id for e in by_text} == {b.id}
        assert [e.actor for e in by_actor] == ["juan"]

    async def test_date_range(self, ledger, make_item):
        item, _ = await make_item(units=10)
        now = datetime.utcnow()

        past = [e async for e in ledger.query(MovementFilter(date_to=now - timedelta(days=1)))]
        recent = [e async for e in ledger.query(MovementFilter(date_from=now - timedelta(hours=1)))]

        assert past == []
        assert len(recent) == 1

    async def test_query_sees_later_appends(self, ledger, make_item):
        item, _ = await make_item(units=10)
        first = [e async for e in ledger.query()]

        await ledger.record(item.id, MovementType.ENTRADA, 1)
        second = [e async for e in ledger.query()]

        assert len(second) == len(first) + 1

    async def test_limit(self, ledger, make_item):
        item, _ = await make_item(units=10)
        for _ in range(4):
            await ledger.record(item.id, MovementType.ENTRADA, 1)

        entries = [e async for e in ledger.query(MovementFilter(limit=3))]

        assert len(entries) == 3


class TestBalancesAndStats:
    async def test_replay_matches_current_balance(self, ledger, make_item):
        item, _ = await make_item(units=40)
        await ledger.record(item.id, MovementType.AJUSTE, -3)
        await ledger.record(item.id, MovementType.ASIGNACION, -7, client_or_destination="Obra 5")
        await ledger.record(item.id, MovementType.ENTRADA, 12)

        assert await ledger.replay_balance(item.id) == 42
        assert await ledger.current_balance(item.id) == 42

    async def test_current_balance_without_history(self, ledger, make_item):
        item, _ = await make_item(units=0)
        assert await ledger.current_balance(item.id) == 0

    async def test_statistics(self, ledger, make_item):
        a, _ = await make_item(units=10, name="Aceite")
        b, _ = await make_item(units=20, name="Arroz")
        await ledger.record(b.id, MovementType.AJUSTE, -4)
        await ledger.record(b.id, MovementType.ENTRADA, 6)

        stats = await ledger.statistics(top=1)

        assert stats.total_movements == 4
        assert stats.by_type["Entrada"].count == 3
        assert stats.by_type["Entrada"].units == 36
        assert stats.by_type["Ajuste"].units == 4
        assert stats.by_type["Salida"].count == 0
        assert stats.most_active_items == [(b.id, 3)]


class TestExport:
    async def test_csv_rows_follow_query_order(self, ledger, make_item):
        item, _ = await make_item(units=10, name="Aceite")
        await ledger.record(item.id, MovementType.AJUSTE, -2, reason="rotura", actor="ana")

        content = await ledger.export()

        rows = list(csv.reader(io.StringIO(content)))
        assert rows[0] == EXPORT_HEADERS
        assert len(rows) == 3
        assert rows[1][1] == "Ajuste"
        assert rows[1][2] == "Aceite"
        assert rows[1][4] == "-2"
        assert rows[1][9] == "ana"
        assert rows[1][10] == "rotura"
        assert rows[2][1] == "Entrada"

    async def test_empty_export_has_header_only(self, ledger, stock_store):
        content = await ledger.export(MovementFilter(search_text="nothing"))

        rows = list(csv.reader(io.StringIO(content)))
        assert rows == [EXPORT_HEADERS]

    async def test_unsupported_format(self, ledger, stock_store):
        with pytest.raises(ValidationError):
            await ledger.export(format="pdf")
