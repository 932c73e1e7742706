"""
SNIIM report fetcher.

Issues exactly one POST per (window, commodity) and returns the parsed
page. No retries happen here: every failure is raised as FetchError and
the orchestrator owns the retry policy.
"""

import httpx
from typing import Any, Dict, Optional
from core.config import settings
from core.exceptions import FetchError
from ingestion.extractors.table_extractor import SoupDocument, TabularDocument
from schemas.window import QueryWindow, Direction
import logging

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y"
ALL_MARKETS_ID = -1
ALL_MARKETS_NAME = "Todos"


class ReportFetcher:
    """
    Fetch report pages from the SNIIM price endpoint.

    Use as an async context manager so the underlying client is closed:

        async with ReportFetcher() as fetcher:
            document = await fetcher.fetch(window, commodity.external_id)

    Attributes:
        base_url: Report endpoint
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        reference_market: Optional[str] = None,
        reference_origin_id: Optional[int] = None,
        reference_destination_id: Optional[int] = None
    ):
        self.base_url = base_url or settings.SNIIM_BASE_URL
        self.timeout = timeout if timeout is not None else settings.SNIIM_REQUEST_TIMEOUT
        self.reference_market = reference_market or settings.SNIIM_REFERENCE_MARKET
        self.reference_origin_id = reference_origin_id or settings.SNIIM_REFERENCE_ORIGIN_ID
        self.reference_destination_id = reference_destination_id or settings.SNIIM_REFERENCE_DESTINATION_ID
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "ReportFetcher":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_params(self, window: QueryWindow, commodity_external_id: int) -> Dict[str, Any]:
        """Query parameters for one report request"""
        origin_id, origin = ALL_MARKETS_ID, ALL_MARKETS_NAME
        destination_id, destination = ALL_MARKETS_ID, ALL_MARKETS_NAME

        if window.direction == Direction.FROM_REFERENCE:
            origin_id, origin = self.reference_origin_id, self.reference_market
        elif window.direction == Direction.TO_REFERENCE:
            destination_id, destination = self.reference_destination_id, self.reference_market

        return {
            "fechaInicio": window.start_date.strftime(DATE_FORMAT),
            "fechaFinal": window.end_date.strftime(DATE_FORMAT),
            "PreciosPorId": window.price_type.value,
            "RegistrosPorPagina": window.page_size,
            "OrigenId": origin_id,
            "Origen": origin,
            "DestinoId": destination_id,
            "Destino": destination,
            "ProductoId": commodity_external_id,
        }

    async def fetch(self, window: QueryWindow, commodity_external_id: int) -> TabularDocument:
        """
        Fetch and parse one report page.

        Args:
            window: Query window to request
            commodity_external_id: SNIIM product id

        Returns:
            Parsed page

        Raises:
            FetchError: On timeout, transport failure, non-2xx status or
                unparsable markup
        """
        if self._client is None:
            await self.__aenter__()

        params = self.build_params(window, commodity_external_id)
        context = {
            "url": self.base_url,
            "window": window.describe(),
            "commodity_external_id": commodity_external_id,
        }

        logger.info(f"Fetching report for product {commodity_external_id} ({window.describe()})")

        try:
            response = await self._client.post(self.base_url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise FetchError(
                "Request timed out",
                context={**context, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise FetchError("Transport error", context=context, original_exception=e)

        if not response.is_success:
            raise FetchError(
                f"Report source answered {response.status_code}",
                context={
                    **context,
                    "status_code": response.status_code,
                    "response_body": response.text[:500],
                }
            )

        try:
            return SoupDocument.from_html(response.text)
        except Exception as e:
            raise FetchError(
                "Failed to parse report markup",
                context={**context, "response_body": response.text[:500]},
                original_exception=e
            )
