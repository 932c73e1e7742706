"""
Transform raw report rows into canonical price records
"""

from typing import List, Optional, Tuple
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import enum
import re
from pydantic import ValidationError
from core.config import settings
from core.exceptions import DataQualityRejection
from models.base import Presentation
from schemas.normalized import PriceRecordCreate
from schemas.window import Direction
import logging

logger = logging.getLogger(__name__)

DATE_HEADER = "Fecha"
DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


class CurrencyLocale(str, enum.Enum):
    """Separator conventions used by the source"""
    COMMA_THOUSANDS = "comma_thousands"  # 1,234.56
    DOT_THOUSANDS = "dot_thousands"      # 1.234,56


# Grouped or ungrouped amounts, optional sign and decimals
AMOUNT_PATTERNS = {
    CurrencyLocale.COMMA_THOUSANDS: re.compile(r"-?(\d{1,3}(,\d{3})+|\d+)(\.\d+)?"),
    CurrencyLocale.DOT_THOUSANDS: re.compile(r"-?(\d{1,3}(\.\d{3})+|\d+)(,\d+)?"),
}


def is_header_row(raw_row: List[str]) -> bool:
    """True for the repeated column header row"""
    return bool(raw_row) and raw_row[0].strip() == DATE_HEADER


def parse_date(value: str) -> Optional[date]:
    """
    Parse a DD/MM/YYYY date (day and month may be unpadded, the year has four digits).

    Returns:
        The calendar date, or None if the value does not form a valid date
    """
    match = DATE_PATTERN.fullmatch(value.strip())
    if match is None:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_minor_units(value: str, locale: CurrencyLocale = CurrencyLocale.COMMA_THOUSANDS) -> Optional[int]:
    """
    Parse a currency string into integer minor units.

    "1,234.56" -> 123456 (COMMA_THOUSANDS), "1.234,56" -> 123456 (DOT_THOUSANDS).
    A value written with the other locale's separators does not parse.

    Returns:
        Minor units rounded half-up, or None if the value is not a number
    """
    locale = CurrencyLocale(locale)
    text = value.strip().lstrip("$").strip()
    if not AMOUNT_PATTERNS[locale].fullmatch(text):
        return None

    if locale == CurrencyLocale.DOT_THOUSANDS:
        text = text.replace(".", "").replace(",", ".")
    else:
        text = text.replace(",", "")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None

    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RowNormalizer:
    """
    Normalize raw table rows into PriceRecordCreate.

    Row shapes (cells after extraction):
    - No direction, both markets explicit:
        date, presentation, origin, destination, min, max, frequent, [obs]
    - Direction set, reference market implied:
        date, presentation, market, min, max, frequent, [obs]

    Rejected rows raise DataQualityRejection with a reason code.
    """

    def __init__(
        self,
        reference_market: Optional[str] = None,
        currency_locale: Optional[CurrencyLocale] = None
    ):
        self.reference_market = reference_market or settings.SNIIM_REFERENCE_MARKET
        self.currency_locale = CurrencyLocale(currency_locale or settings.SNIIM_CURRENCY_LOCALE)

    def normalize(
        self,
        raw_row: List[str],
        commodity_id: int,
        presentation: Presentation,
        direction: Optional[Direction] = None
    ) -> PriceRecordCreate:
        """
        Normalize one raw row.

        Args:
            raw_row: Cell texts from the table extractor
            commodity_id: Internal commodity id
            presentation: COMERCIAL or CALCULADO
            direction: Window direction; None when both markets are columns

        Returns:
            Validated price record

        Raises:
            DataQualityRejection: For header rows, unexpected arity, invalid
                dates or unparsable prices
        """
        context = {"row": raw_row, "commodity_id": commodity_id}

        if is_header_row(raw_row):
            raise DataQualityRejection(DataQualityRejection.HEADER_ROW, "Header row", context=context)

        source, destination, price_cells, observation = self._split_row(raw_row, direction, context)

        parsed_date = parse_date(raw_row[0])
        if parsed_date is None:
            raise DataQualityRejection(
                DataQualityRejection.INVALID_DATE,
                f"Invalid date '{raw_row[0]}'",
                context=context
            )

        prices = []
        for cell in price_cells:
            minor_units = parse_minor_units(cell, self.currency_locale)
            if minor_units is None or minor_units < 0:
                raise DataQualityRejection(
                    DataQualityRejection.INVALID_PRICE,
                    f"Invalid price '{cell}'",
                    context=context
                )
            prices.append(minor_units)

        try:
            return PriceRecordCreate(
                date=parsed_date,
                source_market=source,
                destination_market=destination,
                commodity_id=commodity_id,
                presentation=presentation,
                presentation_label=raw_row[1],
                min_price=prices[0],
                max_price=prices[1],
                frequent_price=prices[2],
                observation=observation,
            )
        except ValidationError as e:
            raise DataQualityRejection(
                DataQualityRejection.MALFORMED_ROW,
                "Row failed record validation",
                context=context,
                original_exception=e
            )

    def _split_row(
        self,
        raw_row: List[str],
        direction: Optional[Direction],
        context: dict
    ) -> Tuple[str, str, List[str], Optional[str]]:
        """Pick (source, destination, price cells, observation) out of the row"""
        arity = len(raw_row)

        if direction is None:
            if arity not in (7, 8):
                raise DataQualityRejection(
                    DataQualityRejection.MALFORMED_ROW,
                    f"Expected 7 or 8 cells, got {arity}",
                    context=context
                )
            source, destination = raw_row[2], raw_row[3]
            price_cells = raw_row[4:7]
            observation = raw_row[7] if arity == 8 else None
        else:
            if arity not in (6, 7):
                raise DataQualityRejection(
                    DataQualityRejection.MALFORMED_ROW,
                    f"Expected 6 or 7 cells, got {arity}",
                    context=context
                )
            counterpart = raw_row[2]
            if direction == Direction.FROM_REFERENCE:
                source, destination = self.reference_market, counterpart
            else:
                source, destination = counterpart, self.reference_market
            price_cells = raw_row[3:6]
            observation = raw_row[6] if arity == 7 else None

        return source, destination, price_cells, observation
