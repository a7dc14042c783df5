"""
Sale allocation engine.

Decides how a sale is satisfied: whole sealed cases for case sales, and for
loose-unit sales the open box first, then at most one newly broken case, or
the loose units outside cases once no whole case remains.
``simulate`` is a pure read; ``commit`` re-validates under the item lock and
writes the open box change and the ledger entry as one atomic step.
"""

from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from stockledger.config import get_logger
from stockledger.core.entities.sale import SaleRequest, SaleSimulation, SaleType
from stockledger.core.entities.stock import (
    MovementEntry,
    MovementType,
    OpenBox,
    Presentation,
    StockItem,
)
from stockledger.core.exceptions import (
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidPresentationError,
    OpenBoxError,
    StockItemNotFoundError,
)
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.core.services.open_box_tracker import OpenBoxTracker
from stockledger.core.services.presentation_catalog import pick_case
from stockledger.core.services.stock_ledger import StockLedger

logger = get_logger(__name__)

DEFAULT_SALE_REASON = {
    SaleType.CASE_COMPLETE: "Venta",
    SaleType.LOOSE_UNITS: "Venta individual",
}


@dataclass
class SaleState:
    """Point-in-time snapshot a sale is planned against."""

    item: StockItem
    presentations: list[Presentation]
    open_box: OpenBox | None

    @property
    def remainder(self) -> int:
        if self.open_box is None or not self.open_box.is_open:
            return 0
        return self.open_box.units_remaining

    @property
    def sealed_units(self) -> int:
        return max(self.item.total_units_available - self.remainder, 0)


@dataclass
class SaleCommitResult:
    """Result of a committed sale."""

    entry: MovementEntry
    simulation: SaleSimulation
    item: StockItem
    open_box: OpenBox | None


def _infeasible(
    request: SaleRequest, state: SaleState, units: int, reason: str
) -> SaleSimulation:
    balance = state.item.total_units_available
    return SaleSimulation(
        feasible=False,
        reason=reason,
        sale_type=request.sale_type,
        quantity_requested=request.quantity,
        units_requested=units,
        resulting_open_box_remainder=state.remainder,
        balance_before=balance,
        projected_balance=balance,
    )


def plan_case_sale(request: SaleRequest, state: SaleState) -> SaleSimulation:
    """Whole cases come from sealed stock only; the open box is never counted."""
    item_id = request.stock_item_id
    if request.presentation_id is None:
        raise InvalidPresentationError(
            item_id, None, "presentation_id is required for case_complete sales"
        )
    presentation = next(
        (p for p in state.presentations if p.id == request.presentation_id), None
    )
    if presentation is None:
        raise InvalidPresentationError(
            item_id, request.presentation_id, "presentation not found for this item"
        )

    factor = presentation.conversion_factor
    units = request.quantity * factor
    available_cases = state.sealed_units // factor
    if request.quantity > available_cases:
        return _infeasible(
            request,
            state,
            units,
            f"only {available_cases} sealed case(s) of {factor} available",
        )

    balance = state.item.total_units_available
    return SaleSimulation(
        feasible=True,
        sale_type=request.sale_type,
        quantity_requested=request.quantity,
        units_requested=units,
        units_from_sealed=units,
        case_presentation_id=presentation.id,
        resulting_open_box_remainder=state.remainder,
        balance_before=balance,
        projected_balance=balance - units,
    )


def plan_loose_sale(request: SaleRequest, state: SaleState) -> SaleSimulation:
    """
    Loose units come from the open box, then from exactly one new case.

    A shortfall larger than one case is refused even when the total balance
    would cover it. Once no whole case is left, units outside any case (left
    by a receipt or adjustment that is not a multiple of the case) cover the
    shortfall instead.
    """
    quantity = request.quantity
    balance = state.item.total_units_available
    remainder = state.remainder
    case = pick_case(state.presentations)

    if case is None:
        # Sold by the unit only: no case to break
        if quantity > balance:
            return _infeasible(
                request, state, quantity, f"only {balance} unit(s) available"
            )
        return SaleSimulation(
            feasible=True,
            sale_type=request.sale_type,
            quantity_requested=quantity,
            units_requested=quantity,
            units_from_sealed=quantity,
            balance_before=balance,
            projected_balance=balance - quantity,
        )

    if quantity <= remainder:
        return SaleSimulation(
            feasible=True,
            sale_type=request.sale_type,
            quantity_requested=quantity,
            units_requested=quantity,
            units_from_open_box=quantity,
            case_presentation_id=case.id,
            resulting_open_box_remainder=remainder - quantity,
            balance_before=balance,
            projected_balance=balance - quantity,
        )

    factor = case.conversion_factor
    shortfall = quantity - remainder
    if state.sealed_units < factor:
        # No whole case left: units outside cases are sold as they are
        loose = state.sealed_units
        if shortfall > loose:
            return _infeasible(
                request,
                state,
                quantity,
                f"open box has {remainder} unit(s), {loose} loose unit(s) "
                "outside cases and no sealed case is available",
            )
        return SaleSimulation(
            feasible=True,
            sale_type=request.sale_type,
            quantity_requested=quantity,
            units_requested=quantity,
            units_from_open_box=remainder,
            units_from_loose=shortfall,
            case_presentation_id=case.id,
            resulting_open_box_remainder=0,
            balance_before=balance,
            projected_balance=balance - quantity,
        )
    if shortfall > factor:
        return _infeasible(
            request,
            state,
            quantity,
            f"at most {remainder + factor} unit(s) per sale: "
            f"{remainder} in the open box plus one case of {factor}",
        )

    return SaleSimulation(
        feasible=True,
        sale_type=request.sale_type,
        quantity_requested=quantity,
        units_requested=quantity,
        units_from_open_box=remainder,
        units_from_new_case=shortfall,
        opens_new_case=True,
        case_presentation_id=case.id,
        resulting_open_box_remainder=factor - shortfall,
        balance_before=balance,
        projected_balance=balance - quantity,
    )


def plan_sale(request: SaleRequest, state: SaleState) -> SaleSimulation:
    """Allocate a sale against a snapshot without mutating anything."""
    if request.sale_type == SaleType.CASE_COMPLETE:
        return plan_case_sale(request, state)
    return plan_loose_sale(request, state)


class SaleEngine:
    """
    Service for simulating and committing sales.

    Commits for one stock item are serialized through the ledger's lock
    registry. A caller may also pass the balance its simulation saw; a
    mismatch at commit time raises ConcurrentModificationError so the caller
    re-simulates.
    """

    def __init__(self, stock_store: IStockStore, ledger: StockLedger) -> None:
        self._store = stock_store
        self._ledger = ledger

    async def _load_state(self, stock_item_id: int) -> SaleState:
        item = await self._store.get_item(stock_item_id)
        if item is None:
            raise StockItemNotFoundError(stock_item_id)
        presentations = await self._store.list_presentations(stock_item_id)
        open_box = await self._store.get_open_box(stock_item_id)
        return SaleState(
            item=item,
            presentations=sorted(presentations, key=lambda p: p.id or 0),
            open_box=open_box,
        )

    async def simulate(self, request: SaleRequest) -> SaleSimulation:
        """Check feasibility and allocation without mutating state."""
        state = await self._load_state(request.stock_item_id)
        return plan_sale(request, state)

    async def commit(
        self,
        request: SaleRequest,
        expected_balance: int | None = None,
    ) -> SaleCommitResult:
        """
        Commit a sale against the latest state.

        Raises:
            ConcurrentModificationError: balance differs from ``expected_balance``
            InsufficientStockError: allocation rules do not permit the sale
            InvalidPresentationError: missing or foreign presentation
        """
        item_id = request.stock_item_id

        async with self._ledger.locks.lock(item_id):
            state = await self._load_state(item_id)
            balance = state.item.total_units_available

            if expected_balance is not None and balance != expected_balance:
                raise ConcurrentModificationError(item_id, expected_balance, balance)

            simulation = plan_sale(request, state)
            if not simulation.feasible:
                raise InsufficientStockError(
                    item_id,
                    requested=simulation.units_requested,
                    available=balance,
                    reason=simulation.reason,
                )

            tracker = OpenBoxTracker(
                {item_id: state.open_box} if state.open_box is not None else None
            )
            try:
                if simulation.units_from_open_box:
                    tracker.consume_units(item_id, simulation.units_from_open_box)
                if simulation.opens_new_case:
                    case = next(
                        p
                        for p in state.presentations
                        if p.id == simulation.case_presentation_id
                    )
                    tracker.open_box(item_id, case)
                    tracker.consume_units(item_id, simulation.units_from_new_case)
            except OpenBoxError as e:
                logger.error("sale_commit_aborted", **e.details)
                raise

            entry = MovementEntry(
                movement_type=MovementType.SALIDA,
                stock_item_id=item_id,
                quantity_delta=-simulation.units_requested,
                balance_before=balance,
                balance_after=simulation.projected_balance,
                actor=request.actor,
                reason=request.reason or DEFAULT_SALE_REASON[request.sale_type],
                client_or_destination=request.client_or_destination,
                invoice_number=request.invoice_number,
                external_reference=request.external_reference,
                load_code=state.item.load_code,
            )
            entry = await self._ledger.append(entry, tracker.pending_change(item_id))

        logger.info(
            "sale_committed",
            stock_item_id=item_id,
            sale_type=request.sale_type.value,
            units=simulation.units_requested,
            opened_case=simulation.opens_new_case,
            balance_after=entry.balance_after,
        )
        return SaleCommitResult(
            entry=entry,
            simulation=simulation,
            item=state.item.model_copy(
                update={"total_units_available": entry.balance_after}
            ),
            open_box=tracker.get(item_id),
        )

    async def commit_with_retry(
        self,
        request: SaleRequest,
        attempts: int = 3,
    ) -> SaleCommitResult:
        """
        Simulate, then commit against the simulated balance.

        On ConcurrentModificationError re-simulates and retries, up to
        ``attempts`` commits in total.
        """
        item_id = request.stock_item_id

        def log_conflict(retry_state: RetryCallState) -> None:
            logger.warning(
                "sale_commit_conflict",
                stock_item_id=item_id,
                attempt=retry_state.attempt_number,
            )

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            retry=retry_if_exception_type(ConcurrentModificationError),
            before_sleep=log_conflict,
            reraise=True,
        ):
            with attempt:
                simulation = await self.simulate(request)
                result = await self.commit(
                    request, expected_balance=simulation.balance_before
                )
        return result
