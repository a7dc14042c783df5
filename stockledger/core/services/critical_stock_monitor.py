"""
Critical stock monitor.

A pure view over current balances: classifies each stock item as SinStock,
Critico, Bajo or Normal against configured thresholds. Safe to call on any
schedule; it never writes.
"""

from dataclasses import dataclass

from stockledger.core.entities.stock import (
    CriticalityLevel,
    OpenBox,
    Presentation,
    StockItem,
)
from stockledger.core.exceptions import ConfigurationError
from stockledger.core.services.presentation_catalog import pick_case


@dataclass(frozen=True)
class CriticalityThresholds:
    """Inclusive upper bounds, in atomic units, for each non-normal level."""

    sin_stock_at: int = 0
    critico_at: int = 5
    bajo_at: int = 20

    def __post_init__(self) -> None:
        if not (self.sin_stock_at <= self.critico_at <= self.bajo_at):
            raise ConfigurationError(
                "Thresholds must satisfy sin_stock_at <= critico_at <= bajo_at",
                code="CONFIGURATION_ERROR",
                details={
                    "sin_stock_at": self.sin_stock_at,
                    "critico_at": self.critico_at,
                    "bajo_at": self.bajo_at,
                },
            )


@dataclass(frozen=True)
class StockAlert:
    """Classification of one stock item."""

    stock_item_id: int
    name: str
    brand: str | None
    total_units_available: int
    level: CriticalityLevel


@dataclass(frozen=True)
class ProductSummary:
    """Stock of one item broken down into sealed cases and loose units."""

    stock_item_id: int
    name: str
    total_units_available: int
    case_factor: int
    sealed_cases: int
    loose_units: int
    has_open_box: bool
    open_box_remaining: int
    open_box_original: int
    open_box_percent_used: float
    level: CriticalityLevel
    requires_restock: bool


class CriticalStockMonitor:
    """Classifies stock items by sufficiency."""

    def __init__(self, thresholds: CriticalityThresholds | None = None) -> None:
        self.thresholds = thresholds or CriticalityThresholds()

    def classify(self, balance: int) -> CriticalityLevel:
        t = self.thresholds
        if balance <= t.sin_stock_at:
            return CriticalityLevel.SIN_STOCK
        if balance <= t.critico_at:
            return CriticalityLevel.CRITICO
        if balance <= t.bajo_at:
            return CriticalityLevel.BAJO
        return CriticalityLevel.NORMAL

    def snapshot(self, items: list[StockItem]) -> list[StockAlert]:
        """Classify every item, in the order given."""
        return [
            StockAlert(
                stock_item_id=item.id,  # type: ignore[arg-type]
                name=item.name,
                brand=item.brand,
                total_units_available=item.total_units_available,
                level=self.classify(item.total_units_available),
            )
            for item in items
        ]

    def critical_items(
        self, items: list[StockItem], limit: int | None = None
    ) -> list[StockAlert]:
        """Non-normal items, most severe first, then lowest balance."""
        alerts = [
            a for a in self.snapshot(items) if a.level != CriticalityLevel.NORMAL
        ]
        alerts.sort(
            key=lambda a: (a.level.severity, a.total_units_available, a.stock_item_id)
        )
        return alerts[:limit] if limit is not None else alerts

    def summarize_item(
        self,
        item: StockItem,
        presentations: list[Presentation],
        open_box: OpenBox | None,
    ) -> ProductSummary:
        total = item.total_units_available
        case = pick_case(presentations)
        factor = case.conversion_factor if case is not None else 1
        box = open_box if open_box is not None and open_box.is_open else None
        remainder = box.units_remaining if box is not None else 0

        sealed_cases = max(total - remainder, 0) // factor
        level = self.classify(total)
        return ProductSummary(
            stock_item_id=item.id,  # type: ignore[arg-type]
            name=item.name,
            total_units_available=total,
            case_factor=factor,
            sealed_cases=sealed_cases,
            loose_units=total - sealed_cases * factor,
            has_open_box=box is not None,
            open_box_remaining=remainder,
            open_box_original=box.units_original if box is not None else 0,
            open_box_percent_used=box.percent_used if box is not None else 0.0,
            level=level,
            requires_restock=level != CriticalityLevel.NORMAL,
        )
