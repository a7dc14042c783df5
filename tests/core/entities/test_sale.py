"""Tests for sale entities."""

import pytest
from pydantic import ValidationError

from stockledger.core.entities import SaleRequest, SaleSimulation, SaleType


class TestSaleRequest:
    def test_defaults(self):
        request = SaleRequest(stock_item_id=1, sale_type=SaleType.LOOSE_UNITS, quantity=5)
        assert request.presentation_id is None
        assert request.actor == "Sistema"
        assert request.client_or_destination is None

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            SaleRequest(stock_item_id=1, sale_type=SaleType.LOOSE_UNITS, quantity=0)

    def test_sale_type_from_value(self):
        request = SaleRequest(stock_item_id=1, sale_type="case_complete", quantity=1)
        assert request.sale_type is SaleType.CASE_COMPLETE


class TestSaleSimulation:
    def test_allocation_defaults_to_zero(self):
        simulation = SaleSimulation(
            feasible=False,
            sale_type=SaleType.LOOSE_UNITS,
            quantity_requested=3,
            units_requested=3,
            balance_before=0,
            projected_balance=0,
        )
        assert simulation.units_from_open_box == 0
        assert simulation.units_from_new_case == 0
        assert not simulation.opens_new_case
