from datetime import date, datetime
from typing import Union

# Days elapsed before the first of each month in a common year
_CUMULATIVE_DAYS = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)


def is_leap_year(year: int) -> bool:
    """Gregorian leap-year rule."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def decimal_year(year: int, month: int, day: int) -> float:
    """
    Convert a calendar date to a decimal year.

    The day of year is counted from 1, so January 1st maps slightly past the
    integer year, matching the geomag convention.

    Args:
        year: Calendar year
        month: Month number (1-12)
        day: Day of month

    Returns:
        Decimal year
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    leap = is_leap_year(year)
    day_in_year = _CUMULATIVE_DAYS[month - 1] + day + (1 if month > 2 and leap else 0)
    return year + day_in_year / (365.0 + (1 if leap else 0))


def decimal_year_from_date(value: Union[date, datetime]) -> float:
    """Decimal year of a ``date`` or ``datetime`` (time of day ignored)."""
    return decimal_year(value.year, value.month, value.day)
