from sqlalchemy import Column, BigInteger, Integer, String, Text, Date, Enum, ForeignKey, Index
from models.base import Base, Presentation, enum_values


class Price(Base):
    """
    One reported price for a commodity between two markets on a date.

    Monetary fields are integer minor currency units (centavos).
    Rows are write-once.
    """
    __tablename__ = "prices"

    id = Column(BigInteger, primary_key=True, autoincrement=True)

    date = Column(Date, nullable=False, index=True)
    source_market_id = Column(Integer, ForeignKey("markets.id"), nullable=False)
    destination_market_id = Column(Integer, ForeignKey("markets.id"), nullable=False)
    commodity_id = Column(Integer, ForeignKey("commodities.id"), nullable=False)

    presentation = Column(
        Enum(Presentation, name="presentation", values_callable=enum_values),
        nullable=False
    )
    presentation_label = Column(String(255), nullable=True)  # e.g. "Arpilla 25 kg"

    min_price = Column(BigInteger, nullable=False)
    max_price = Column(BigInteger, nullable=False)
    frequent_price = Column(BigInteger, nullable=False)

    observation = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_price_commodity_date", "commodity_id", "date"),
        Index("idx_price_markets", "source_market_id", "destination_market_id"),
    )
