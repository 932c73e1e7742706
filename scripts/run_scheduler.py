"""
Long-running process that triggers an incremental ingestion every interval
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.logging import setup_logging
from ingestion.scheduler import IngestionScheduler

logger = logging.getLogger(__name__)


async def main():
    scheduler = IngestionScheduler()
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
