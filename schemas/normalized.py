"""
Pydantic schemas for normalized price data with validation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
import datetime
from models.base import Presentation


class CommodityRef(BaseModel):
    """Commodity as loaded once per run"""

    model_config = ConfigDict(frozen=True)

    id: int
    external_id: int
    name: Optional[str] = None


class MarketRead(BaseModel):
    """Market as returned by the store"""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class PriceRecordCreate(BaseModel):
    """
    Canonical price record produced by the row normalizer.

    Ensures:
    - Monetary fields are non-negative integer minor units
    - Date is a calendar date (no time component)
    - Empty observations are stored as None

    Market names are carried as text; the orchestrator resolves them to
    ids right before insert.
    """

    date: datetime.date
    source_market: str = Field(..., min_length=1, max_length=255)
    destination_market: str = Field(..., min_length=1, max_length=255)
    commodity_id: int
    presentation: Presentation
    presentation_label: Optional[str] = Field(None, max_length=255)

    min_price: int = Field(..., ge=0)
    max_price: int = Field(..., ge=0)
    frequent_price: int = Field(..., ge=0)

    observation: Optional[str] = None

    @field_validator("source_market", "destination_market", "presentation_label")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("observation")
    @classmethod
    def clean_observation(cls, v):
        """Treat blank observations as absent"""
        if v is None:
            return None
        v = v.strip()
        return v or None

    def to_row(self, source_market_id: int, destination_market_id: int) -> dict:
        """Column values for the prices table"""
        return {
            "date": self.date,
            "source_market_id": source_market_id,
            "destination_market_id": destination_market_id,
            "commodity_id": self.commodity_id,
            "presentation": self.presentation,
            "presentation_label": self.presentation_label,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "frequent_price": self.frequent_price,
            "observation": self.observation,
        }
