"""
Load normalized price records into PostgreSQL
"""

from typing import List, Optional
from core.config import settings
from core.database import QueryExecutor
from ingestion import queries
from schemas.normalized import CommodityRef, PriceRecordCreate
import logging

logger = logging.getLogger(__name__)


class PriceLoader:
    """
    Read commodities and write price rows through the query executor.

    Price rows are write-once. With ``deduplicate`` off (the default) every
    call inserts, so re-running a window stores its rows again. With it on,
    a row identical in every column is skipped.
    """

    def __init__(self, executor: QueryExecutor, deduplicate: Optional[bool] = None):
        self.executor = executor
        self.deduplicate = settings.PRICE_DEDUPLICATE if deduplicate is None else deduplicate

    async def fetch_commodities(self) -> List[CommodityRef]:
        """Load the commodities to harvest"""
        rows = await self.executor.execute_query(queries.select_commodities())
        commodities = [CommodityRef(**row) for row in rows]
        logger.info(f"Loaded {len(commodities)} commodities")
        return commodities

    async def insert_price(
        self,
        record: PriceRecordCreate,
        source_market_id: int,
        destination_market_id: int
    ) -> Optional[int]:
        """
        Insert one price row.

        Returns:
            The new price id, or None when the row already existed and
            deduplication is enabled

        Raises:
            StoreError: If the executor fails
        """
        values = record.to_row(source_market_id, destination_market_id)

        if self.deduplicate:
            existing = await self.executor.execute_query(queries.select_matching_price(values))
            if existing:
                logger.debug(f"Price already stored as {existing[0]['id']}, skipping")
                return None

        rows = await self.executor.execute_query(queries.insert_price(values))
        price_id = rows[0]["id"]
        logger.debug(f"Price {price_id} created")
        return price_id
