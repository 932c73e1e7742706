"""
Tests for failure scenarios and error handling
"""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch
from sqlalchemy import Insert
from core.exceptions import ETLException, FetchError, StoreError
from ingestion.runner import IngestionRunner
from models.base import IngestStatus
from schemas.normalized import CommodityRef


def failing_then_ok(failures, body):
    """Handler answering 503 ``failures`` times, then 200 with ``body``"""
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) <= failures:
            return httpx.Response(503, text="Service Unavailable")
        return httpx.Response(200, text=body)

    return handler, calls


@pytest.mark.asyncio
async def test_report_source_down_aborts_run(fake_executor, make_fetcher, commodities, historic_window):
    """
    Test: report source is down, the run aborts after retries and the failure is recorded
    """
    handler, calls = failing_then_ok(failures=99, body="")
    runner = IngestionRunner(fake_executor, make_fetcher(handler), max_retries=3, retry_base_delay=0)

    with pytest.raises(FetchError) as exc_info:
        await runner.run([historic_window], commodities)

    assert exc_info.value.context["status_code"] == 503
    assert len(calls) == 3

    # Summary reflects the failure
    assert runner.summary.status == IngestStatus.FAILED
    assert runner.summary.tasks_processed == 0
    assert runner.summary.records_ingested == 0

    # Run recorded with the error
    runs = fake_executor.tables["ingestion_runs"]
    assert len(runs) == 1
    assert runs[0]["status"] == IngestStatus.FAILED
    assert runs[0]["error_message"] == exc_info.value.message
    assert runs[0]["error_details"]["error_type"] == "FetchError"


@pytest.mark.asyncio
async def test_transient_fetch_failure_is_retried(fake_executor, make_fetcher, render_report,
                                                  commodities, historic_window, report_rows):
    handler, calls = failing_then_ok(failures=2, body=render_report(report_rows))
    runner = IngestionRunner(fake_executor, make_fetcher(handler), max_retries=3, retry_base_delay=0)

    summary = await runner.run([historic_window], commodities)

    assert summary.status == IngestStatus.SUCCESS
    assert summary.records_ingested == 1
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_backoff_is_exponential(fake_executor, make_fetcher, commodities, historic_window):
    handler, _ = failing_then_ok(failures=99, body="")
    runner = IngestionRunner(fake_executor, make_fetcher(handler), max_retries=3, retry_base_delay=1.5)

    with patch("ingestion.runner.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(FetchError):
            await runner.run([historic_window], commodities)

    assert [c.args[0] for c in mock_sleep.await_args_list] == [1.5, 3.0]


@pytest.mark.asyncio
async def test_failure_stops_remaining_tasks(fake_executor, make_fetcher, historic_window):
    """No later commodity is fetched once a task has failed"""
    requested = []

    def handler(request):
        requested.append(request.url.params["ProductoId"])
        return httpx.Response(500)

    commodities = [
        CommodityRef(id=1, external_id=355, name="Papa alpha"),
        CommodityRef(id=2, external_id=356, name="Papa blanca"),
    ]
    runner = IngestionRunner(fake_executor, make_fetcher(handler), max_retries=2, retry_base_delay=0)

    with pytest.raises(FetchError):
        await runner.run([historic_window], commodities)

    assert requested == ["355", "355"]


@pytest.mark.asyncio
async def test_price_insert_failure_aborts_run(fake_executor, make_fetcher, render_report,
                                               commodities, historic_window, report_rows):
    fake_executor.fail_when = lambda s: isinstance(s, Insert) and s.table.name == "prices"
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=render_report(report_rows)))
    runner = IngestionRunner(fake_executor, fetcher, max_retries=3, retry_base_delay=0)

    with pytest.raises(StoreError):
        await runner.run([historic_window], commodities)

    assert fake_executor.inserts_into("prices") == 3
    assert fake_executor.tables["prices"] == []
    assert runner.summary.status == IngestStatus.FAILED
    # Markets resolved before the failing insert stay counted
    assert runner.summary.markets_created == 2
    assert fake_executor.tables["ingestion_runs"][0]["status"] == IngestStatus.FAILED


@pytest.mark.asyncio
async def test_market_lookup_failure_aborts_run(fake_executor, make_fetcher, render_report,
                                                commodities, historic_window, report_rows):
    fake_executor.fail_when = lambda s: not isinstance(s, Insert) and s.get_final_froms()[0].name == "markets"
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=render_report(report_rows)))
    runner = IngestionRunner(fake_executor, fetcher, max_retries=2, retry_base_delay=0)

    with pytest.raises(StoreError):
        await runner.run([historic_window], commodities)

    assert fake_executor.tables["markets"] == []
    assert fake_executor.tables["prices"] == []


@pytest.mark.asyncio
async def test_run_record_failure_does_not_fail_run(fake_executor, make_fetcher, render_report,
                                                    commodities, historic_window, report_rows):
    fake_executor.fail_when = lambda s: isinstance(s, Insert) and s.table.name == "ingestion_runs"
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=render_report(report_rows)))
    runner = IngestionRunner(fake_executor, fetcher, retry_base_delay=0)

    summary = await runner.run([historic_window], commodities)

    assert summary.status == IngestStatus.SUCCESS
    assert summary.records_ingested == 1


@pytest.mark.asyncio
async def test_missing_results_table_yields_no_rows(fake_executor, make_fetcher, commodities, historic_window):
    html = "<html><body><span>No hay datos para la consulta</span></body></html>"
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=html))
    runner = IngestionRunner(fake_executor, fetcher, retry_base_delay=0)

    summary = await runner.run([historic_window], commodities)

    assert summary.status == IngestStatus.SUCCESS
    assert summary.tasks_processed == 1
    assert summary.rows_seen == 0
    assert fake_executor.tables["prices"] == []


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(fake_executor, make_fetcher, render_report,
                                           commodities, historic_window, report_rows):
    normalizer = MagicMock()
    normalizer.normalize.side_effect = RuntimeError("boom")
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=render_report(report_rows)))
    runner = IngestionRunner(fake_executor, fetcher, normalizer=normalizer, retry_base_delay=0)

    with pytest.raises(ETLException) as exc_info:
        await runner.run([historic_window], commodities)

    assert type(exc_info.value) is ETLException
    assert isinstance(exc_info.value.original_exception, RuntimeError)
    assert fake_executor.tables["ingestion_runs"][0]["error_message"] == "boom"
