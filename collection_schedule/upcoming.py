"""
This module merges a zone's regular and special collections into one list.
"""
import logging
from datetime import date
from typing import List

from .config import UPCOMING_COLLECTIONS_LIMIT
from .models import ScheduleData, UpcomingCollection
from .recurrence import next_occurrence, resolve_rule
from .special_collections import (
    special_collection_color,
    special_collection_name,
    upcoming_for_zone,
)

logger = logging.getLogger(__name__)


def regular_collections(schedule: ScheduleData, zone_id: str, today: date) -> List[UpcomingCollection]:
    """Projects every collection type enabled for the zone, in collection-type order."""
    zone_schedule = schedule.zone_schedule(zone_id)
    items = []
    for collection_type in schedule.collection_types:
        rule = zone_schedule.get(collection_type.id)
        if rule is None:
            continue
        items.append(
            UpcomingCollection(
                kind="regular",
                date=next_occurrence(resolve_rule(rule, zone_schedule), today),
                name=collection_type.name,
                color=collection_type.color,
                collection_type_id=collection_type.id,
                rule=rule,
            )
        )
    return items


def special_collections(schedule: ScheduleData, zone_id: str, today: date) -> List[UpcomingCollection]:
    return [
        UpcomingCollection(
            kind="special",
            date=item.collection_date,
            name=special_collection_name(item, schedule),
            color=special_collection_color(item, schedule),
            collection_type_id=item.collection_type_id,
            special=item,
        )
        for item in upcoming_for_zone(schedule.special_collections, zone_id, today)
    ]


def combined_upcoming_collections(
    schedule: ScheduleData, zone_id: str, today: date, limit: int = UPCOMING_COLLECTIONS_LIMIT
) -> List[UpcomingCollection]:
    """
    Returns the next `limit` collections for the zone, regular and special
    together, soonest first. Ties keep regular collections ahead of special ones.
    """
    items = regular_collections(schedule, zone_id, today) + special_collections(schedule, zone_id, today)
    items.sort(key=lambda item: item.date)
    return items[: max(limit, 0)]
