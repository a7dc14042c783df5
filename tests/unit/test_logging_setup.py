"""Tests for the structlog processors."""

from stockledger.config.logging import add_service_context, enum_values
from stockledger.core.entities import MovementType, SaleType


class TestProcessors:
    def test_enum_fields_logged_by_value(self):
        event = enum_values(
            None,
            "info",
            {"event": "sale_committed", "sale_type": SaleType.LOOSE_UNITS, "units": 5},
        )

        assert event["sale_type"] == SaleType.LOOSE_UNITS.value
        assert event["units"] == 5

    def test_movement_type_matches_stored_value(self):
        event = enum_values(None, "info", {"movement_type": MovementType.SALIDA})

        assert event["movement_type"] == MovementType.SALIDA.value
        assert not isinstance(event["movement_type"], MovementType)

    def test_service_context_does_not_override(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")

        event = add_service_context(None, "info", {"event": "x", "service": "worker"})

        assert event["service"] == "worker"
        assert event["env"] == "staging"
