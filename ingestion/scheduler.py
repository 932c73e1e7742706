import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import settings
from core.exceptions import ETLException
from ingestion.pipeline import run_ingestion
from models.base import IngestMode

logger = logging.getLogger(__name__)


class IngestionScheduler:
    def __init__(self, interval_hours: int = None):
        self.scheduler = AsyncIOScheduler(timezone=settings.SNIIM_TIMEZONE)
        self.interval_hours = interval_hours or settings.INGEST_INTERVAL_HOURS

    async def run_ingestion_job(self):
        """Job to run one incremental ingestion"""
        logger.info("Scheduler: Starting ingestion job")
        try:
            summary = await run_ingestion(IngestMode.INCREMENTAL)
            logger.info(
                f"Scheduler: Ingestion job finished, {summary.records_ingested} records ingested"
            )
        except ETLException as e:
            logger.error(f"Scheduler: Ingestion job failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_ingestion_job,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id="sniim_ingestion_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Ingestion scheduler started, running every {self.interval_hours} hours")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Ingestion scheduler stopped")
