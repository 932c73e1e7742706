"""
Pydantic schemas for data validation throughout the pipeline.

Schemas:
    window: Query windows (date range, price type, direction, page size)
    normalized: Commodity and market references and the canonical price record
    summary: Ingestion run summary counters

Usage:
    from schemas.window import QueryWindow, PriceType, Direction
    from schemas.normalized import PriceRecordCreate, MarketRead, CommodityRef
    from schemas.summary import IngestionSummary

Validation:
    - Windows reject start dates after end dates
    - Price records reject negative monetary values
    - Blank observations become None
"""

__all__ = [
    "QueryWindow",
    "PriceType",
    "Direction",
    "CommodityRef",
    "MarketRead",
    "PriceRecordCreate",
    "IngestionSummary",
]
