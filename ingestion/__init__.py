"""
Ingestion pipeline for SNIIM market price reports.

Modules:
    windows: Query window generation for incremental and historic runs
    queries: SQLAlchemy Core statements sent through the query executor
    runner: Sequential orchestrator (fetch → extract → normalize → resolve → insert)
    pipeline: One full run (load commodities, build windows, run, shut down)
    scheduler: APScheduler integration for periodic runs

Subpackages:
    extractors: Report fetcher (httpx) and results-table extractor
    transformers: Row normalization into canonical price records
    resolvers: Market name resolution with a per-run cache
    loaders: Price inserts and commodity reads

Architecture:
    Every (window, commodity) pair is processed one at a time. The
    report source is not built for concurrent load, and the market
    cache is only consistent with a single writer.

Usage:
    from ingestion.pipeline import run_ingestion
    from models.base import IngestMode

Example:
    summary = await run_ingestion(IngestMode.HISTORIC, years=(2018, 2020))
    print(f"Ingested {summary.records_ingested} prices")

Error Handling:
    FetchError and StoreError are retried with backoff and abort the run
    once retries run out. Rows failing data-quality checks are skipped and
    counted in the run summary.
"""

__all__ = [
    "generate_windows",
    "ReportFetcher",
    "extract_rows",
    "RowNormalizer",
    "MarketResolver",
    "PriceLoader",
    "IngestionRunner",
    "run_ingestion",
]
