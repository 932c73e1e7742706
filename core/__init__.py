"""
Core utilities and configuration for the SNIIM price harvester.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Query executor over the async SQLAlchemy engine
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import QueryExecutor
    from core.exceptions import FetchError, StoreError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Run a statement
    executor = QueryExecutor()
    rows = await executor.execute_query(select(Market))
    await executor.shutdown()
"""

__all__ = [
    "settings",
    "QueryExecutor",
    "setup_logging",
    # Exceptions
    "ETLException",
    "ExtractionError",
    "FetchError",
    "TransformationError",
    "DataQualityRejection",
    "LoadError",
    "StoreError",
    "RetryableError",
    "NonRetryableError",
]
