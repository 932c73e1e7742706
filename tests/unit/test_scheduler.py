import pytest
from unittest.mock import AsyncMock, patch
from core.exceptions import FetchError
from ingestion.scheduler import IngestionScheduler
from models.base import IngestMode
from schemas.summary import IngestionSummary

@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = IngestionScheduler(interval_hours=6)
    assert scheduler.scheduler is not None
    assert scheduler.interval_hours == 6

@pytest.mark.asyncio
async def test_scheduler_job_runs_incremental_ingestion():
    with patch("ingestion.scheduler.run_ingestion", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = IngestionSummary(records_ingested=3)

        scheduler = IngestionScheduler()
        await scheduler.run_ingestion_job()

        mock_run.assert_awaited_once_with(IngestMode.INCREMENTAL)

@pytest.mark.asyncio
async def test_scheduler_job_survives_failed_run():
    with patch("ingestion.scheduler.run_ingestion", new_callable=AsyncMock) as mock_run:
        mock_run.side_effect = FetchError("Report source answered 503")

        scheduler = IngestionScheduler()
        # Must not raise: the next tick should still run
        await scheduler.run_ingestion_job()

        assert mock_run.await_count == 1
