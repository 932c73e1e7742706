"""
Query window schema for report requests
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import date
import enum
from models.base import Presentation


class PriceType(int, enum.Enum):
    """SNIIM ``PreciosPorId`` values"""
    COMMERCIAL = 1
    CALCULATED = 2

    @property
    def presentation(self) -> Presentation:
        if self is PriceType.COMMERCIAL:
            return Presentation.COMMERCIAL
        return Presentation.CALCULATED


class Direction(str, enum.Enum):
    """Whether the reference market is the origin or the destination"""
    FROM_REFERENCE = "from_reference"
    TO_REFERENCE = "to_reference"


class QueryWindow(BaseModel):
    """One report request: date range, price type, direction and page size"""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    price_type: PriceType
    direction: Optional[Direction] = None
    page_size: int = Field(..., gt=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        return self

    def describe(self) -> str:
        direction = self.direction.value if self.direction else "all"
        return (
            f"{self.start_date.isoformat()}..{self.end_date.isoformat()} "
            f"type={self.price_type.value} direction={direction}"
        )
