"""
Script to run one SNIIM ingestion (incremental or historic backfill)
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.exceptions import ETLException
from core.logging import setup_logging
from ingestion.pipeline import run_ingestion
from models.base import IngestMode

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Harvest SNIIM price reports into Postgres")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in IngestMode],
        default=IngestMode.INCREMENTAL.value,
        help="incremental covers yesterday and today; historic backfills whole years"
    )
    parser.add_argument("--start-year", type=int, help="First year to backfill (historic)")
    parser.add_argument("--end-year", type=int, help="Last year to backfill (historic)")
    parser.add_argument(
        "--whole-range",
        action="store_true",
        help="Request the whole year range in one window instead of one per year"
    )
    args = parser.parse_args(argv)

    if args.mode == IngestMode.HISTORIC.value:
        if args.start_year is None:
            parser.error("--start-year is required in historic mode")
        if args.end_year is None:
            args.end_year = args.start_year
    return args


async def run_etl(args):
    """Run the pipeline once and report the summary"""
    mode = IngestMode(args.mode)
    years = (args.start_year, args.end_year) if mode == IngestMode.HISTORIC else None

    try:
        summary = await run_ingestion(mode, years=years, whole_range=args.whole_range)
    except ETLException as e:
        logger.error(f"Ingestion failed: {e}")
        sys.exit(1)

    logger.info(
        f"Ingestion completed: Ingested={summary.records_ingested}, "
        f"Rejected={summary.rows_rejected}, Reasons={summary.rejection_reasons}"
    )


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run_etl(parse_args()))
