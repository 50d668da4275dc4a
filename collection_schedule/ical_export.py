"""
This module renders a zone's projected collections as an iCalendar feed.

It uses the icalendar library to build the calendar.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from icalendar import Calendar, Event

from .config import CALENDAR_EXPORT_WEEKS
from .i18n import localize
from .models import ScheduleData
from .recurrence import iter_occurrences, resolve_rule
from .special_collections import special_collection_name, upcoming_for_zone

logger = logging.getLogger(__name__)

PRODID = "-//CivicKey//Collection Schedule//EN"


def _all_day_event(uid: str, day: date, summary: str, description: str = "", location: str = "") -> Event:
    event = Event()
    event.add("uid", uid)
    event.add("dtstart", day)
    event.add("dtend", day + timedelta(days=1))
    event.add("summary", summary)
    if description:
        event.add("description", description)
    if location:
        event.add("location", location)
    return event


def build_zone_calendar(
    schedule: ScheduleData,
    municipality_id: str,
    zone_id: str,
    locale: Optional[str],
    today: date,
    weeks: int = CALENDAR_EXPORT_WEEKS,
) -> Calendar:
    """
    Builds a calendar with one all-day event per projected collection from
    `today` through `weeks` weeks ahead, plus the zone's special collections
    in that window.
    """
    until = today + timedelta(weeks=weeks)
    zone = schedule.find_zone(zone_id)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("x-wr-calname", localize(zone.name if zone else None, locale, zone_id))

    zone_schedule = schedule.zone_schedule(zone_id)
    for collection_type in schedule.collection_types:
        rule = zone_schedule.get(collection_type.id)
        if rule is None:
            continue
        effective = resolve_rule(rule, zone_schedule)
        summary = localize(collection_type.name, locale, collection_type.id)
        description = localize(collection_type.bin_name, locale)
        for day in iter_occurrences(effective, today, until):
            uid = f"{municipality_id}-{zone_id}-{collection_type.id}-{day.isoformat()}@civickey"
            cal.add_component(_all_day_event(uid, day, summary, description))

    for item in upcoming_for_zone(schedule.special_collections, zone_id, today):
        day = item.collection_date
        if day > until:
            break
        uid = f"{municipality_id}-special-{item.id}@civickey"
        summary = localize(special_collection_name(item, schedule), locale, item.id)
        cal.add_component(
            _all_day_event(uid, day, summary, localize(item.description, locale), item.location or "")
        )

    logger.info(f"Built calendar for {municipality_id}/{zone_id} through {until.isoformat()}.")
    return cal
