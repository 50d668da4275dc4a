"""
Filtering and display helpers for one-off special collections.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from .models import DEFAULT_COLOR, ScheduleData, SpecialCollection

logger = logging.getLogger(__name__)

UPCOMING = "upcoming"
PAST = "past"
ALL = "all"
FILTER_MODES = (UPCOMING, PAST, ALL)


def filter_special_collections(
    items: Iterable[SpecialCollection], mode: str, today: date
) -> List[SpecialCollection]:
    """
    Splits special collections around `today`.

    `upcoming` keeps dates on or after today, oldest first. `past` keeps dates
    before today, most recent first. `all` keeps everything, oldest first, with
    undated entries last. Entries whose date cannot be parsed are left out of
    `upcoming` and `past`.

    Raises:
        ValueError: If `mode` is not one of FILTER_MODES.
    """
    if mode not in FILTER_MODES:
        raise ValueError(f"Unknown special collection filter '{mode}'.")

    dated = []
    undated = []
    for item in items:
        item_date = item.collection_date
        if item_date is None:
            logger.warning(f"Special collection '{item.id}' has no usable date ({item.date!r}).")
            undated.append(item)
        else:
            dated.append((item_date, item))

    if mode == UPCOMING:
        selected = [pair for pair in dated if pair[0] >= today]
    elif mode == PAST:
        selected = [pair for pair in dated if pair[0] < today]
    else:
        selected = dated

    selected.sort(key=lambda pair: pair[0], reverse=(mode == PAST))
    result = [item for _, item in selected]
    if mode == ALL:
        result.extend(undated)
    return result


def applies_to_zone(item: SpecialCollection, zone_id: Optional[str]) -> bool:
    """An empty zone list means every zone."""
    if not item.zones or zone_id is None:
        return True
    return zone_id in item.zones


def upcoming_for_zone(
    items: Iterable[SpecialCollection], zone_id: Optional[str], today: date
) -> List[SpecialCollection]:
    """Active, upcoming special collections a resident of `zone_id` should see."""
    visible = [item for item in items if item.active and applies_to_zone(item, zone_id)]
    return filter_special_collections(visible, UPCOMING, today)


def special_collection_name(item: SpecialCollection, schedule: ScheduleData) -> Dict[str, str]:
    """The bilingual name: the referenced type's name, else the custom name."""
    if item.collection_type_id:
        collection_type = schedule.find_collection_type(item.collection_type_id)
        if collection_type and collection_type.name:
            return collection_type.name
        return {"en": item.collection_type_id}
    return item.custom_name or {}


def special_collection_color(item: SpecialCollection, schedule: ScheduleData) -> str:
    if item.collection_type_id:
        collection_type = schedule.find_collection_type(item.collection_type_id)
        return collection_type.color if collection_type and collection_type.color else DEFAULT_COLOR
    return item.custom_color or DEFAULT_COLOR
