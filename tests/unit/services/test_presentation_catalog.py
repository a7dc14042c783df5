"""Tests for PresentationCatalog and the presentation pickers."""

from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities import Presentation, StockItem
from stockledger.core.exceptions import (
    DuplicateAtomicPresentationError,
    InvalidConversionFactorError,
    InvalidPresentationError,
    StockItemNotFoundError,
)
from stockledger.core.services import PresentationCatalog, pick_atomic, pick_case, pick_default


def _p(pid: int, factor: int, is_default: bool = False, item_id: int = 1) -> Presentation:
    return Presentation(
        id=pid,
        stock_item_id=item_id,
        name=f"x{factor}",
        conversion_factor=factor,
        is_default=is_default,
    )


@pytest.fixture
def mock_store():
    store = AsyncMock()
    store.get_item.return_value = StockItem(id=1, name="Aceite 1L")
    store.list_presentations.return_value = []

    async def _add(presentation: Presentation) -> Presentation:
        return presentation.model_copy(update={"id": 100})

    store.add_presentation.side_effect = _add
    return store


class TestPickers:
    def test_pick_default_prefers_marked(self):
        presentations = [_p(1, 1), _p(2, 12, is_default=True)]
        assert pick_default(presentations).id == 2

    def test_pick_default_falls_back_to_atomic(self):
        presentations = [_p(1, 1), _p(2, 12)]
        assert pick_default(presentations).id == 1

    def test_pick_atomic_none_without_factor_one(self):
        assert pick_atomic([_p(2, 12)]) is None

    def test_pick_case_uses_default_case(self):
        presentations = [_p(1, 1), _p(2, 24), _p(3, 12, is_default=True)]
        assert pick_case(presentations).id == 3

    def test_pick_case_largest_when_default_is_atomic(self):
        presentations = [_p(1, 1, is_default=True), _p(2, 6), _p(3, 24)]
        assert pick_case(presentations).id == 3

    def test_pick_case_tie_lowest_id(self):
        presentations = [_p(1, 1), _p(5, 12), _p(4, 12)]
        assert pick_case(presentations).id == 4

    def test_pick_case_none_for_unit_only_item(self):
        assert pick_case([_p(1, 1, is_default=True)]) is None


class TestAddPresentation:
    async def test_adds_case_with_default_name(self, mock_store):
        catalog = PresentationCatalog(mock_store)

        result = await catalog.add_presentation(1, 12, price=110000.0)

        assert result.id == 100
        assert result.name == "Caja x12"
        assert result.conversion_factor == 12
        assert result.price == 110000.0
        mock_store.add_presentation.assert_awaited_once()

    async def test_atomic_named_unidad(self, mock_store):
        catalog = PresentationCatalog(mock_store)

        result = await catalog.add_presentation(1, 1)

        assert result.name == "Unidad"
        assert result.is_atomic

    @pytest.mark.parametrize("factor", [0, -1, 2.5, True, "12"])
    async def test_rejects_invalid_factor(self, mock_store, factor):
        catalog = PresentationCatalog(mock_store)

        with pytest.raises(InvalidConversionFactorError):
            await catalog.add_presentation(1, factor)
        mock_store.add_presentation.assert_not_awaited()

    async def test_rejects_second_atomic(self, mock_store):
        mock_store.list_presentations.return_value = [_p(7, 1)]
        catalog = PresentationCatalog(mock_store)

        with pytest.raises(DuplicateAtomicPresentationError) as exc_info:
            await catalog.add_presentation(1, 1)
        assert exc_info.value.details["existing_id"] == 7

    async def test_unknown_item(self, mock_store):
        mock_store.get_item.return_value = None
        catalog = PresentationCatalog(mock_store)

        with pytest.raises(StockItemNotFoundError):
            await catalog.add_presentation(99, 6)


class TestLookups:
    async def test_list_is_sorted_by_id(self, mock_store):
        mock_store.list_presentations.return_value = [_p(3, 12), _p(1, 1)]
        catalog = PresentationCatalog(mock_store)

        result = await catalog.list_presentations(1)

        assert [p.id for p in result] == [1, 3]

    async def test_get_default_without_presentations(self, mock_store):
        catalog = PresentationCatalog(mock_store)

        with pytest.raises(InvalidPresentationError):
            await catalog.get_default(1)

    async def test_get_atomic(self, mock_store):
        mock_store.list_presentations.return_value = [_p(2, 12, is_default=True), _p(1, 1)]
        catalog = PresentationCatalog(mock_store)

        assert (await catalog.get_atomic(1)).id == 1
        assert (await catalog.get_case(1)).id == 2

    async def test_get_presentation_of_other_item(self, mock_store):
        mock_store.get_presentation.return_value = _p(5, 12, item_id=2)
        catalog = PresentationCatalog(mock_store)

        with pytest.raises(InvalidPresentationError) as exc_info:
            await catalog.get_presentation(1, 5)
        assert "another stock item" in exc_info.value.message

    async def test_get_presentation_missing(self, mock_store):
        mock_store.get_presentation.return_value = None
        catalog = PresentationCatalog(mock_store)

        with pytest.raises(InvalidPresentationError):
            await catalog.get_presentation(1, 5)
