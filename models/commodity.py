from sqlalchemy import Column, Integer, String, Index
from models.base import Base


class Commodity(Base):
    """
    Reference data for the commodities to harvest.

    Read-only for the pipeline: external_id is the SNIIM product id sent in
    report requests, id is the foreign key used by prices.
    """
    __tablename__ = "commodities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(Integer, nullable=False)
    name = Column(String(200), nullable=False)

    __table_args__ = (
        Index("idx_commodity_external_id", "external_id"),
    )
