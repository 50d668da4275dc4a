"""
This module builds the per-zone schedule cards shown on the public website
and in the resident bot.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from .i18n import localize, localize_list, translate, weekday_name
from .labels import SHORT_DATE, display_label
from .models import BIWEEKLY, MONTHLY, ScheduleData
from .recurrence import next_occurrence, resolve_rule

FREQUENCY_LABEL_KEYS = {MONTHLY: "monthly", BIWEEKLY: "every_two_weeks"}


def frequency_label(frequency: str, locale: Optional[str]) -> str:
    return translate(FREQUENCY_LABEL_KEYS.get(frequency, "every_week"), locale)


def build_schedule_cards(
    schedule: ScheduleData, zone_id: str, locale: Optional[str], today: date
) -> List[Dict[str, Any]]:
    """
    Returns one card per collection type collected in the zone.

    The weekday shown is the effective one, so a piggybacked rule shows the
    day it borrows.
    """
    zone_schedule = schedule.zone_schedule(zone_id)
    cards = []
    for collection_type in schedule.collection_types:
        rule = zone_schedule.get(collection_type.id)
        if rule is None:
            continue
        effective = resolve_rule(rule, zone_schedule)
        next_date = next_occurrence(effective, today)
        cards.append(
            {
                "id": collection_type.id,
                "name": localize(collection_type.name, locale, collection_type.id),
                "bin_name": localize(collection_type.bin_name, locale),
                "bin_size": collection_type.bin_size,
                "color": collection_type.color,
                "day": weekday_name(effective.day_of_week, locale),
                "frequency": rule.frequency,
                "frequency_label": frequency_label(rule.frequency, locale),
                "time": rule.time,
                "end_time": rule.end_time,
                "next_date": next_date.isoformat(),
                "next_label": display_label(next_date, today, locale, SHORT_DATE),
                "accepted": localize_list(collection_type.accepted, locale),
                "not_accepted": localize_list(collection_type.not_accepted, locale),
                "tip": localize(collection_type.tip, locale),
            }
        )
    return cards
