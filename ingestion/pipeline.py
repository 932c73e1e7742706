"""
One full ingestion run: commodities → windows → orchestrator
"""

from typing import Optional, Sequence, Tuple
from datetime import date
import logging

from core.database import QueryExecutor
from ingestion.extractors.report_fetcher import ReportFetcher
from ingestion.loaders.postgres_loader import PriceLoader
from ingestion.resolvers.market_resolver import MarketResolver
from ingestion.runner import IngestionRunner
from ingestion.windows import generate_windows
from models.base import IngestMode, IngestStatus
from schemas.summary import IngestionSummary
from schemas.window import PriceType

logger = logging.getLogger(__name__)


async def run_ingestion(
    mode: IngestMode = IngestMode.INCREMENTAL,
    *,
    executor: Optional[QueryExecutor] = None,
    fetcher: Optional[ReportFetcher] = None,
    price_types: Optional[Sequence[PriceType]] = None,
    years: Optional[Tuple[int, int]] = None,
    whole_range: bool = False,
    now: Optional[date] = None,
    retry_base_delay: Optional[float] = None
) -> IngestionSummary:
    """
    Run the pipeline once.

    Executors and fetchers created here are shut down before returning;
    ones passed in are left open for the caller.

    Raises:
        FetchError / StoreError: When the run aborts
    """
    owns_executor = executor is None
    executor = executor or QueryExecutor()
    owns_fetcher = fetcher is None
    fetcher = fetcher or ReportFetcher()

    try:
        loader = PriceLoader(executor)
        commodities = await loader.fetch_commodities()
        if not commodities:
            logger.warning("No commodities configured. Skipping ingestion.")
            return IngestionSummary(mode=mode, status=IngestStatus.SUCCESS)

        windows = generate_windows(
            mode,
            price_types=price_types,
            years=years,
            whole_range=whole_range,
            now=now
        )

        runner = IngestionRunner(
            executor=executor,
            fetcher=fetcher,
            resolver_factory=MarketResolver,
            loader=loader,
            mode=mode,
            retry_base_delay=retry_base_delay
        )
        return await runner.run(windows, commodities)

    finally:
        if owns_fetcher:
            await fetcher.close()
        if owns_executor:
            await executor.shutdown()
