"""
Market name resolution with a per-run cache
"""

from typing import Dict
from core.database import QueryExecutor
from ingestion import queries
from schemas.normalized import MarketRead
import logging

logger = logging.getLogger(__name__)


class MarketResolver:
    """
    Map market names to stored markets, creating unknown ones.

    One instance per ingestion run. Resolution must be called
    sequentially: the cache has a single writer, and two concurrent
    misses on the same new name would insert it twice.
    """

    def __init__(self, executor: QueryExecutor):
        self.executor = executor
        self._cache: Dict[str, MarketRead] = {}
        self.lookups = 0
        self.inserts = 0

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def resolve(self, name: str) -> MarketRead:
        """
        Return the market called ``name`` (exact, case-sensitive match).

        Raises:
            StoreError: If the lookup or the insert fails
        """
        cached = self._cache.get(name)
        if cached is not None:
            logger.debug(f"Market {name} fetched from cache")
            return cached

        self.lookups += 1
        rows = await self.executor.execute_query(queries.select_market_by_name(name))
        if rows:
            market = MarketRead(**rows[0])
            logger.info(f"Market {market.name} found in database")
        else:
            rows = await self.executor.execute_query(queries.insert_market(name))
            market = MarketRead(**rows[0])
            self.inserts += 1
            logger.info(f"Market {market.name} created")

        self._cache[name] = market
        return market
