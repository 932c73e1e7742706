"""
Query window generation for incremental and historic runs.

Pure functions of the configuration and a "today" date; no I/O.
"""

from typing import Iterable, List, Optional, Sequence, Tuple
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo
from core.config import settings
from models.base import IngestMode
from schemas.window import QueryWindow, PriceType, Direction
import logging

logger = logging.getLogger(__name__)

ALL_PRICE_TYPES = (PriceType.COMMERCIAL, PriceType.CALCULATED)


def today_in_source_timezone() -> date:
    """Current date where the report source lives"""
    return datetime.now(ZoneInfo(settings.SNIIM_TIMEZONE)).date()


def generate_windows(
    mode: IngestMode,
    price_types: Optional[Sequence[PriceType]] = None,
    years: Optional[Tuple[int, int]] = None,
    *,
    whole_range: bool = False,
    directions: Optional[Iterable[Direction]] = None,
    now: Optional[date] = None
) -> List[QueryWindow]:
    """
    Build the ordered list of query windows for a run.

    Args:
        mode: INCREMENTAL covers [yesterday, today]; HISTORIC covers ``years``
        price_types: Price types to request (defaults to both)
        years: Inclusive (start_year, end_year), required for HISTORIC
        whole_range: HISTORIC only; one window for the full range instead of one per year
        directions: Reference-market directions. Incremental defaults to
            SNIIM_INCREMENTAL_DIRECTIONS, historic defaults to none (both
            endpoints as explicit columns)
        now: Today's date; defaults to the source timezone's date

    Returns:
        Windows ordered by price type, then direction, then date
    """
    today = now or today_in_source_timezone()
    price_types = tuple(price_types) if price_types else ALL_PRICE_TYPES

    if directions is None:
        if mode == IngestMode.INCREMENTAL:
            directions = [Direction(d) for d in settings.SNIIM_INCREMENTAL_DIRECTIONS]
        else:
            directions = []
    direction_options: List[Optional[Direction]] = list(directions) or [None]

    if mode == IngestMode.INCREMENTAL:
        ranges = [(today - timedelta(days=1), today)]
        page_size = settings.SNIIM_INCREMENTAL_PAGE_SIZE
    elif mode == IngestMode.HISTORIC:
        ranges = _historic_ranges(years, whole_range, today)
        page_size = settings.SNIIM_HISTORIC_PAGE_SIZE
    else:
        raise ValueError(f"Unknown ingest mode: {mode}")

    windows = [
        QueryWindow(
            start_date=start,
            end_date=end,
            price_type=price_type,
            direction=direction,
            page_size=page_size,
        )
        for price_type in price_types
        for direction in direction_options
        for start, end in ranges
    ]

    logger.info(f"Generated {len(windows)} {mode.value} windows")
    return windows


def _historic_ranges(
    years: Optional[Tuple[int, int]],
    whole_range: bool,
    today: date
) -> List[Tuple[date, date]]:
    if not years:
        raise ValueError("Historic mode requires a (start_year, end_year) range")

    start_year, end_year = years
    if start_year > end_year:
        raise ValueError(f"start_year {start_year} is after end_year {end_year}")
    if start_year > today.year:
        raise ValueError(f"start_year {start_year} is in the future")

    def year_end(year: int) -> date:
        return min(date(year, 12, 31), today)

    end_year = min(end_year, today.year)

    if whole_range:
        return [(date(start_year, 1, 1), year_end(end_year))]

    return [
        (date(year, 1, 1), year_end(year))
        for year in range(start_year, end_year + 1)
    ]
