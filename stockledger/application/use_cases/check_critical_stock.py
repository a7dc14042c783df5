"""
Check Critical Stock Use Case.

Classifies every stock item against the criticality thresholds and reports
the items that need restocking. Read-only; safe to poll.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime

from stockledger.application.dto.responses import (
    CriticalStockResponse,
    ProductSummaryResponse,
    StockAlertResponse,
    presentation_to_response,
)
from stockledger.config import get_logger, get_settings
from stockledger.core.entities import CriticalityLevel, Presentation, StockItem
from stockledger.core.exceptions import StockItemNotFoundError
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import CriticalStockMonitor, ProductSummary, StockAlert

logger = get_logger(__name__)

# Items read per page when scanning the catalog
SCAN_PAGE_SIZE = 500


@dataclass
class CriticalStockResult:
    """Result of a critical stock check."""

    alerts: list[StockAlert] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    total_items: int = 0
    generated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ProductSummaryResult:
    summary: ProductSummary
    presentations: list[Presentation] = field(default_factory=list)


class CheckCriticalStockUseCase:
    """
    Use case for stock sufficiency alerts.

    ``execute`` returns the most critical items (default limit from
    ``StockSettings.critical_limit``) with per-level counts over all items.
    ``watch`` repeats the check on an interval.
    """

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        monitor: CriticalStockMonitor | None = None,
    ):
        self._stock_store = stock_store
        self._monitor = monitor

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    def _get_monitor(self) -> CriticalStockMonitor:
        if self._monitor is None:
            from stockledger.application.services import get_critical_stock_monitor

            self._monitor = get_critical_stock_monitor()
        return self._monitor

    async def _all_items(self) -> list[StockItem]:
        store = await self._get_stock_store()
        items: list[StockItem] = []
        offset = 0
        while True:
            page = await store.list_items(limit=SCAN_PAGE_SIZE, offset=offset)
            items.extend(page)
            if len(page) < SCAN_PAGE_SIZE:
                return items
            offset += SCAN_PAGE_SIZE

    async def execute(self, limit: int | None = None) -> CriticalStockResult:
        """
        Classify all items and return the critical ones.

        Args:
            limit: Maximum alerts returned (default from settings).

        Returns:
            CriticalStockResult with alerts and counts per level.
        """
        if limit is None:
            limit = get_settings().stock.critical_limit

        monitor = self._get_monitor()
        items = await self._all_items()

        counts = Counter(a.level.value for a in monitor.snapshot(items))
        result = CriticalStockResult(
            alerts=monitor.critical_items(items, limit=limit),
            counts={level.value: counts.get(level.value, 0) for level in CriticalityLevel},
            total_items=len(items),
        )

        logger.info(
            "critical_stock_checked",
            total_items=result.total_items,
            sin_stock=result.counts[CriticalityLevel.SIN_STOCK.value],
            critico=result.counts[CriticalityLevel.CRITICO.value],
            bajo=result.counts[CriticalityLevel.BAJO.value],
        )
        return result

    async def summarize(self, stock_item_id: int) -> ProductSummaryResult:
        """Sealed cases, loose units and open box status of one item."""
        store = await self._get_stock_store()
        item = await store.get_item(stock_item_id)
        if item is None:
            raise StockItemNotFoundError(stock_item_id)

        presentations = await store.list_presentations(stock_item_id)
        open_box = await store.get_open_box(stock_item_id)
        summary = self._get_monitor().summarize_item(item, presentations, open_box)
        return ProductSummaryResult(summary=summary, presentations=presentations)

    async def watch(
        self,
        interval: float | None = None,
        limit: int | None = None,
        iterations: int | None = None,
    ) -> AsyncIterator[CriticalStockResult]:
        """
        Yield a fresh check every ``interval`` seconds.

        Runs until cancelled, or for ``iterations`` checks when given.
        """
        if interval is None:
            interval = get_settings().stock.poll_interval_seconds

        done = 0
        while iterations is None or done < iterations:
            yield await self.execute(limit=limit)
            done += 1
            if iterations is None or done < iterations:
                await asyncio.sleep(interval)

    @staticmethod
    def alert_to_response(alert: StockAlert) -> StockAlertResponse:
        return StockAlertResponse(
            stock_item_id=alert.stock_item_id,
            name=alert.name,
            brand=alert.brand,
            total_units_available=alert.total_units_available,
            level=alert.level.value,
        )

    def to_response(self, result: CriticalStockResult) -> CriticalStockResponse:
        """Convert result to API response."""
        return CriticalStockResponse(
            alerts=[self.alert_to_response(a) for a in result.alerts],
            counts=result.counts,
            total_items=result.total_items,
            generated_at=result.generated_at,
        )

    @staticmethod
    def summary_to_response(result: ProductSummaryResult) -> ProductSummaryResponse:
        s = result.summary
        return ProductSummaryResponse(
            stock_item_id=s.stock_item_id,
            name=s.name,
            total_units_available=s.total_units_available,
            case_factor=s.case_factor,
            sealed_cases=s.sealed_cases,
            loose_units=s.loose_units,
            has_open_box=s.has_open_box,
            open_box_remaining=s.open_box_remaining,
            open_box_original=s.open_box_original,
            open_box_percent_used=s.open_box_percent_used,
            level=s.level.value,
            requires_restock=s.requires_restock,
            presentations=[presentation_to_response(p) for p in result.presentations],
        )
