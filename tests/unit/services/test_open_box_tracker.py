"""Tests for OpenBoxTracker."""

from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities import OpenBox, Presentation
from stockledger.core.exceptions import AlreadyOpenError, OverdrawError
from stockledger.core.services import OpenBoxTracker


@pytest.fixture
def case12() -> Presentation:
    return Presentation(id=2, stock_item_id=1, name="Caja x12", conversion_factor=12)


def _box(remaining: int, original: int = 12) -> OpenBox:
    return OpenBox(
        stock_item_id=1,
        presentation_id=2,
        units_original=original,
        units_remaining=remaining,
    )


class TestOpenBoxTracker:
    def test_closed_item_has_zero_remainder(self):
        tracker = OpenBoxTracker()
        assert tracker.current_remainder(1) == 0
        assert tracker.get(1) is None

    def test_open_box_starts_full(self, case12):
        tracker = OpenBoxTracker()

        box = tracker.open_box(1, case12)

        assert box.units_original == 12
        assert box.units_remaining == 12
        assert tracker.current_remainder(1) == 12

    def test_open_twice_raises(self, case12):
        tracker = OpenBoxTracker({1: _box(7)})

        with pytest.raises(AlreadyOpenError) as exc_info:
            tracker.open_box(1, case12)
        assert exc_info.value.details["units_remaining"] == 7

    def test_exhausted_box_is_ignored_on_load(self, case12):
        tracker = OpenBoxTracker({1: _box(0)})

        assert tracker.get(1) is None
        tracker.open_box(1, case12)

    def test_consume_decrements(self):
        tracker = OpenBoxTracker({1: _box(7)})

        assert tracker.consume_units(1, 3) == 4
        assert tracker.current_remainder(1) == 4

    def test_consume_to_zero_closes(self, case12):
        tracker = OpenBoxTracker({1: _box(7)})

        assert tracker.consume_units(1, 7) == 0
        assert tracker.get(1) is None
        # A closed item can be opened again
        tracker.open_box(1, case12)

    def test_overdraw_raises_and_keeps_state(self):
        tracker = OpenBoxTracker({1: _box(7)})

        with pytest.raises(OverdrawError):
            tracker.consume_units(1, 8)
        assert tracker.current_remainder(1) == 7

    def test_negative_consume_raises(self):
        tracker = OpenBoxTracker({1: _box(7)})

        with pytest.raises(OverdrawError):
            tracker.consume_units(1, -1)

    def test_consume_zero_is_noop(self):
        tracker = OpenBoxTracker({1: _box(7)})

        assert tracker.consume_units(1, 0) == 7
        assert tracker.pending_change(1) is None

    def test_pending_change_tracks_touched_items(self, case12):
        tracker = OpenBoxTracker({1: _box(5)})
        assert tracker.pending_change(1) is None

        tracker.consume_units(1, 5)
        change = tracker.pending_change(1)
        assert change.stock_item_id == 1
        assert change.box is None

        tracker.open_box(1, case12)
        tracker.consume_units(1, 3)
        change = tracker.pending_change(1)
        assert change.box.units_remaining == 9

    async def test_load_from_store(self):
        store = AsyncMock()
        store.get_open_box.side_effect = lambda item_id: _box(4) if item_id == 1 else None

        tracker = await OpenBoxTracker.load(store, 1, 2)

        assert tracker.current_remainder(1) == 4
        assert tracker.current_remainder(2) == 0
