"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (Presentation, IngestStatus, IngestMode)
    commodity: Commodities to harvest (read-only reference data)
    market: Trading locations, created on first observation
    price: Normalized price rows (write-once)
    etl_run: Ingestion run audit trail and summary counters

Usage:
    from models.market import Market
    from models.price import Price
    from models.base import Presentation

Relationships:
    - Price → Market (source and destination)
    - Price → Commodity
"""

__all__ = [
    "Base",
    "Presentation",
    "IngestStatus",
    "IngestMode",
    "Commodity",
    "Market",
    "Price",
    "IngestionRun",
]
