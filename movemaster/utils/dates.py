"""
Date Key Codec

Day-scoped lookups are keyed by the canonical ``YYYY-MM-DD`` string,
built from local calendar components. Nothing here converts through UTC.
"""

import calendar
from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime]


def date_key(d: DateLike) -> str:
    """
    Return ``YYYY-MM-DD`` for the local calendar date of ``d``.

    Aware datetimes are first converted to local wall-clock time.
    """
    if isinstance(d, datetime) and d.tzinfo is not None:
        d = d.astimezone()
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def today_key() -> str:
    return date_key(datetime.now())


def start_of_day(d: DateLike) -> datetime:
    """Zero the time-of-day components, keeping any tzinfo."""
    if isinstance(d, datetime):
        return d.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime(d.year, d.month, d.day)


def split_date_key(value: object) -> Optional[tuple[int, int, int]]:
    """
    Parse a date key into ``(year, month, day)``.

    Returns None for anything that is not a real calendar date.
    Unpadded components (``2025-6-1``) are accepted.
    """
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        return None
    return parsed.year, parsed.month, parsed.day


def parse_date_key(value: Optional[str]) -> date:
    """Inverse of ``date_key``; absent or malformed input means today."""
    parts = split_date_key(value)
    if parts is None:
        return datetime.now().date()
    return date(*parts)


def month_key(d: DateLike) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def add_months(month_start: date, n: int) -> date:
    """First day of the month ``n`` months after ``month_start``'s month."""
    month_value = month_start.month + n
    year_value = month_start.year + (month_value - 1) // 12
    month_value = (month_value - 1) % 12 + 1
    return date(year_value, month_value, 1)


def days_in_month(year: int, month: int) -> int:
    """Number of days in ``month`` (1-12) of ``year``."""
    return calendar.monthrange(year, month)[1]


def month_grid(year: int, month: int) -> list[Optional[str]]:
    """
    Sunday-first month grid.

    Leading ``None`` entries pad the first week, followed by one date key
    per day of the month.
    """
    # date.weekday(): Monday == 0; shift so Sunday == 0
    leading = (date(year, month, 1).weekday() + 1) % 7
    cells: list[Optional[str]] = [None] * leading
    cells.extend(
        date_key(date(year, month, day))
        for day in range(1, days_in_month(year, month) + 1)
    )
    return cells
