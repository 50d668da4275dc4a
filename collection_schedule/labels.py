"""
Human labels for projected collection dates.
"""
from datetime import date
from typing import Optional

from .i18n import format_short_date, format_weekday, translate

SHORT_DATE = "short_date"
WEEKDAY = "weekday"


def display_label(occurrence: date, today: date, locale: Optional[str], variant: str = SHORT_DATE) -> str:
    """
    Labels `occurrence` relative to `today`.

    "Today" and "Tomorrow" (localized) win over everything else. Beyond that
    the `SHORT_DATE` variant gives "Jan 17" / "17 janv." for next-date badges
    and the `WEEKDAY` variant gives the full weekday name for zone cards.
    """
    delta = (occurrence - today).days
    if delta == 0:
        return translate("today", locale)
    if delta == 1:
        return translate("tomorrow", locale)
    if variant == WEEKDAY:
        return format_weekday(occurrence, locale)
    return format_short_date(occurrence, locale)
