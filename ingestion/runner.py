# ============================================================================
# File: ingestion/runner.py
# Description: Sequential ingestion orchestrator with fail-fast error handling
# ============================================================================
"""
Ingestion Runner - Orchestrates fetch, extract, normalize, resolve and insert.

This module drives the windows × commodities loop with:
- Strictly sequential execution (one outstanding fetch or store call)
- Bounded retry with exponential backoff for fetch and store failures
- Fail-fast abort once retries are exhausted
- Silent, counted skipping of rows that fail data-quality checks
- A structured run summary, logged and recorded in ingestion_runs
"""

from typing import Any, Awaitable, Callable, List, Optional, Sequence
from datetime import datetime, timezone
import asyncio
import logging

from core.config import settings
from core.database import QueryExecutor
from core.exceptions import (
    ETLException,
    DataQualityRejection,
    RetryableError,
    StoreError,
)
from ingestion import queries
from ingestion.extractors.report_fetcher import ReportFetcher
from ingestion.extractors.table_extractor import extract_rows
from ingestion.loaders.postgres_loader import PriceLoader
from ingestion.resolvers.market_resolver import MarketResolver
from ingestion.transformers.normalizer import RowNormalizer, is_header_row
from models.base import IngestMode, IngestStatus
from schemas.normalized import CommodityRef
from schemas.summary import IngestionSummary
from schemas.window import QueryWindow

logger = logging.getLogger(__name__)


class IngestionRunner:
    """
    Ingestion orchestrator

    Responsibilities:
    - Walk windows (outer) × commodities (inner) one task at a time
    - Fetch → extract → normalize → resolve markets → insert
    - Retry transient failures, abort the run when they persist
    - Record accurate run metrics

    Every call to run() builds its own MarketResolver from ``resolver_factory``,
    so the market cache never outlives a run.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        fetcher: ReportFetcher,
        resolver_factory: Optional[Callable[[QueryExecutor], MarketResolver]] = None,
        normalizer: Optional[RowNormalizer] = None,
        loader: Optional[PriceLoader] = None,
        mode: IngestMode = IngestMode.INCREMENTAL,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None
    ):
        self.executor = executor
        self.fetcher = fetcher
        self.resolver_factory = resolver_factory or MarketResolver
        self.normalizer = normalizer or RowNormalizer()
        self.loader = loader or PriceLoader(executor)
        self.mode = mode
        self.max_retries = max(1, max_retries if max_retries is not None else settings.MAX_RETRIES)
        self.retry_base_delay = retry_base_delay if retry_base_delay is not None else settings.RETRY_BASE_DELAY
        self.summary: Optional[IngestionSummary] = None

    async def run(
        self,
        windows: Sequence[QueryWindow],
        commodities: Sequence[CommodityRef]
    ) -> IngestionSummary:
        """
        Ingest every (window, commodity) pair.

        Args:
            windows: Ordered query windows
            commodities: Commodities to request for each window

        Returns:
            Run summary; ``records_ingested`` is the number of stored prices

        Raises:
            FetchError: If a report cannot be fetched after retries
            StoreError: If a store operation fails after retries
            ETLException: For unexpected errors (wrapped)
        """
        resolver = self.resolver_factory(self.executor)
        inserts_at_start = resolver.inserts
        summary = IngestionSummary(mode=self.mode, started_at=datetime.now(timezone.utc))
        self.summary = summary

        logger.info(
            f"Starting {self.mode.value} ingestion: "
            f"{len(windows)} windows x {len(commodities)} commodities"
        )

        try:
            for window in windows:
                for commodity in commodities:
                    await self._process_task(window, commodity, resolver, summary)
                    summary.tasks_processed += 1
                summary.windows_processed += 1

        except ETLException as e:
            # Known errors (FetchError, StoreError) - abort the whole run
            logger.error(
                f"Ingestion aborted: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            summary.markets_created = resolver.inserts - inserts_at_start
            await self._finish(summary, IngestStatus.FAILED, e.message, e.to_dict())
            raise

        except Exception as e:
            logger.exception("Unexpected error in ingestion run")
            summary.markets_created = resolver.inserts - inserts_at_start
            await self._finish(summary, IngestStatus.FAILED, str(e))
            raise ETLException(
                "Unexpected error in ingestion run",
                context={
                    "tasks_processed": summary.tasks_processed,
                    "records_ingested": summary.records_ingested,
                },
                original_exception=e
            )

        summary.markets_created = resolver.inserts - inserts_at_start
        await self._finish(summary, IngestStatus.SUCCESS)
        return summary

    async def _process_task(
        self,
        window: QueryWindow,
        commodity: CommodityRef,
        resolver: MarketResolver,
        summary: IngestionSummary
    ):
        document = await self._with_retry(
            lambda: self.fetcher.fetch(window, commodity.external_id),
            f"Fetch of product {commodity.external_id}"
        )
        raw_rows = extract_rows(document)
        logger.info(
            f"Extracted {len(raw_rows)} rows for product {commodity.external_id} "
            f"({window.describe()})"
        )

        presentation = window.price_type.presentation

        for raw_row in raw_rows:
            summary.rows_seen += 1

            if is_header_row(raw_row):
                summary.reject(DataQualityRejection.HEADER_ROW)
                continue

            try:
                record = self.normalizer.normalize(
                    raw_row,
                    commodity_id=commodity.id,
                    presentation=presentation,
                    direction=window.direction
                )
            except DataQualityRejection as e:
                summary.reject(e.reason)
                logger.debug(f"Skipping row ({e.reason}): {raw_row}")
                continue

            source = await self._with_retry(
                lambda: resolver.resolve(record.source_market),
                f"Resolve market {record.source_market}"
            )
            destination = await self._with_retry(
                lambda: resolver.resolve(record.destination_market),
                f"Resolve market {record.destination_market}"
            )
            price_id = await self._with_retry(
                lambda: self.loader.insert_price(record, source.id, destination.id),
                "Insert price"
            )

            if price_id is None:
                summary.duplicates_skipped += 1
            else:
                summary.records_ingested += 1

    async def _with_retry(self, operation: Callable[[], Awaitable[Any]], description: str) -> Any:
        """Run ``operation``, retrying RetryableError with exponential backoff"""
        for attempt in range(1, self.max_retries + 1):
            try:
                return await operation()
            except RetryableError as e:
                if attempt >= self.max_retries:
                    logger.error(f"{description} failed after {attempt} attempts")
                    raise
                delay = self.retry_base_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"{description} failed: {e.message}. "
                    f"Retrying in {delay} seconds (attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)

    async def _finish(
        self,
        summary: IngestionSummary,
        status: IngestStatus,
        error_message: Optional[str] = None,
        error_details: Optional[dict] = None
    ):
        summary.status = status
        summary.error_message = error_message
        summary.completed_at = datetime.now(timezone.utc)

        logger.info(
            f"Ingestion {status.value}: windows={summary.windows_processed}, "
            f"tasks={summary.tasks_processed}, rows_seen={summary.rows_seen}, "
            f"ingested={summary.records_ingested}, rejected={summary.rows_rejected}, "
            f"duplicates={summary.duplicates_skipped}, markets_created={summary.markets_created}, "
            f"reasons={summary.rejection_reasons}"
        )

        await self._record_run(summary, error_details)

    async def _record_run(self, summary: IngestionSummary, error_details: Optional[dict] = None):
        """Write the summary to ingestion_runs; a failure here is only logged"""
        values = {
            "mode": summary.mode,
            "status": summary.status,
            "started_at": summary.started_at,
            "completed_at": summary.completed_at,
            "duration_seconds": summary.duration_seconds,
            "windows_processed": summary.windows_processed,
            "tasks_processed": summary.tasks_processed,
            "rows_seen": summary.rows_seen,
            "records_ingested": summary.records_ingested,
            "rows_rejected": summary.rows_rejected,
            "duplicates_skipped": summary.duplicates_skipped,
            "markets_created": summary.markets_created,
            "rejection_reasons": dict(summary.rejection_reasons),
            "error_message": summary.error_message,
            "error_details": _json_safe(error_details),
        }
        try:
            await self.executor.execute_query(queries.insert_ingestion_run(values))
        except StoreError as e:
            logger.error(f"Failed to record ingestion run: {e.message}")


def _json_safe(details: Optional[dict]) -> Optional[dict]:
    if details is None:
        return None
    return {k: v if isinstance(v, (str, int, float, bool, type(None))) else str(v) for k, v in details.items()}
