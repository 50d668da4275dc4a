"""
Calendar-date helpers shared by the schedule projections.

Dates in schedule documents are ISO `YYYY-MM-DD` strings naming a day on the
resident's local calendar. They are always built from their year/month/day
components and never through a timestamp, so no timezone can shift them.
Weekdays are numbered the way the documents store them: Sunday=0 ... Saturday=6.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def parse_local_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Parses a document date into a calendar date.

    Accepts `YYYY-MM-DD` strings (anything after a `T` is ignored), `date`
    and `datetime` objects. Returns None for missing or unparsable values
    instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        logger.warning(f"Ignoring non-string date value {value!r}.")
        return None

    text = value.strip().split("T", 1)[0]
    if not text:
        return None
    try:
        year, month, day = (int(part) for part in text.split("-"))
        return date(year, month, day)
    except ValueError:
        logger.warning(f"Could not parse date '{value}'.")
        return None


def day_of_week(day: date) -> int:
    """Returns the weekday of `day` with Sunday=0."""
    return day.isoweekday() % DAYS_PER_WEEK


def days_until_weekday(day: date, target_day_of_week: int) -> int:
    """Days from `day` to the next `target_day_of_week` (0 if it is that day)."""
    return (target_day_of_week - day_of_week(day)) % DAYS_PER_WEEK


def weeks_between(start: date, end: date) -> int:
    """Whole weeks from `start` to `end`, truncated toward negative infinity."""
    return (end - start).days // DAYS_PER_WEEK


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def first_of_month(day: date, month_offset: int = 0) -> date:
    """Returns day 1 of the month `month_offset` months after `day`'s month."""
    months = day.year * 12 + (day.month - 1) + month_offset
    return date(months // 12, months % 12 + 1, 1)
