"""
Create the price tables and optionally register commodities to harvest

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --commodity 355 "Papa alpha" --commodity 356 "Papa blanca"
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy import insert, select
from core.database import QueryExecutor
from core.logging import setup_logging
from models.base import Base
# Registers every table on Base.metadata
from models.commodity import Commodity
from models.market import Market  # noqa: F401
from models.price import Price  # noqa: F401
from models.etl_run import IngestionRun  # noqa: F401

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create the SNIIM price tables")
    parser.add_argument(
        "--commodity",
        nargs=2,
        action="append",
        default=[],
        metavar=("EXTERNAL_ID", "NAME"),
        help="SNIIM product id and name to harvest (repeatable)"
    )
    return parser.parse_args(argv)


async def init_database(commodities):
    executor = QueryExecutor()
    try:
        async with executor.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

        for external_id, name in commodities:
            existing = await executor.execute_query(
                select(Commodity.id).where(Commodity.external_id == int(external_id))
            )
            if existing:
                logger.info(f"Commodity {external_id} already registered")
                continue
            await executor.execute_query(
                insert(Commodity).values(external_id=int(external_id), name=name)
            )
            logger.info(f"Commodity {external_id} ({name}) registered")
    finally:
        await executor.shutdown()


if __name__ == "__main__":
    setup_logging()
    args = parse_args()
    asyncio.run(init_database(args.commodity))
