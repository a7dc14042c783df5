"""Manage Presentations Use Case: list and add sellable units of an item."""

from stockledger.application.dto.requests import AddPresentationRequest
from stockledger.application.dto.responses import PresentationResponse, presentation_to_response
from stockledger.core.entities import Presentation
from stockledger.core.exceptions import StockItemNotFoundError
from stockledger.core.interfaces import IStockStore
from stockledger.core.services import PresentationCatalog


class ManagePresentationsUseCase:
    """Presentation catalog operations exposed to the API."""

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        catalog: PresentationCatalog | None = None,
    ):
        self._stock_store = stock_store
        self._catalog = catalog

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    async def _get_catalog(self) -> PresentationCatalog:
        if self._catalog is None:
            from stockledger.application.services import get_presentation_catalog

            self._catalog = await get_presentation_catalog(self._stock_store)
        return self._catalog

    async def list_presentations(self, stock_item_id: int) -> list[Presentation]:
        store = await self._get_stock_store()
        if await store.get_item(stock_item_id) is None:
            raise StockItemNotFoundError(stock_item_id)
        catalog = await self._get_catalog()
        return await catalog.list_presentations(stock_item_id)

    async def add_presentation(
        self, stock_item_id: int, request: AddPresentationRequest
    ) -> Presentation:
        catalog = await self._get_catalog()
        return await catalog.add_presentation(
            stock_item_id,
            request.conversion_factor,
            price=request.price,
            currency=request.currency,
            name=request.name,
            is_default=request.is_default,
        )

    def to_response(self, presentation: Presentation) -> PresentationResponse:
        """Convert result to API response."""
        return presentation_to_response(presentation)
