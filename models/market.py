from sqlalchemy import Column, Integer, String, Index
from models.base import Base


class Market(Base):
    """
    Trading location seen as a price origin or destination.

    Names are stored exactly as received (case-sensitive). Uniqueness by
    name is maintained by the market resolver, not by a constraint.
    """
    __tablename__ = "markets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_market_name", "name"),
    )
