"""
SQLAlchemy Core statements used by the pipeline.

Every statement the pipeline sends through the query executor is built
here, so the executor stays a plain statement runner.
"""

from typing import Any, Dict
from sqlalchemy import select, insert, and_
from models.commodity import Commodity
from models.market import Market
from models.price import Price
from models.etl_run import IngestionRun


def select_commodities():
    return select(Commodity.id, Commodity.external_id, Commodity.name).order_by(Commodity.id)


def select_market_by_name(name: str):
    return select(Market.id, Market.name).where(Market.name == name).limit(1)


def insert_market(name: str):
    return insert(Market).values(name=name).returning(Market.id, Market.name)


def insert_price(values: Dict[str, Any]):
    return insert(Price).values(**values).returning(Price.id)


def select_matching_price(values: Dict[str, Any]):
    """Find a price row identical to ``values`` (all columns except id)"""
    conditions = []
    for column, value in values.items():
        attr = getattr(Price, column)
        conditions.append(attr.is_(None) if value is None else attr == value)
    return select(Price.id).where(and_(*conditions)).limit(1)


def insert_ingestion_run(values: Dict[str, Any]):
    return insert(IngestionRun).values(**values).returning(IngestionRun.id)
