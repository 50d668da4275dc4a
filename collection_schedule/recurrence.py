"""
This module projects recurrence rules onto calendar dates.

All functions are pure: "today" is always passed in, never read from the
clock, so one render pass sees one consistent date. Projection never raises
on bad data; a rule it cannot honour degrades to its plain weekly candidate.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Iterator, Optional

from .dates import (
    DAYS_PER_WEEK,
    add_days,
    days_until_weekday,
    first_of_month,
    weeks_between,
)
from .models import BIWEEKLY, MONTHLY, WEEKLY, RecurrenceRule

logger = logging.getLogger(__name__)

# Current month and the next one.
MONTHLY_SEARCH_OFFSETS = (0, 1)


def _is_off_parity(candidate: date, anchor: date) -> bool:
    """True when `candidate` falls in an odd week counted from `anchor`."""
    return weeks_between(anchor, candidate) % 2 != 0


def _align_to_anchor(candidate: date, anchor: date) -> date:
    if _is_off_parity(candidate, anchor):
        return add_days(candidate, DAYS_PER_WEEK)
    return candidate


def resolve_rule(rule: RecurrenceRule, zone_schedule: Optional[Dict[str, RecurrenceRule]]) -> RecurrenceRule:
    """
    Returns the rule whose day and anchor drive the projection.

    A monthly rule with `piggyback_on` borrows `day_of_week` and `start_date`
    from the referenced rule of the same zone. Only one hop is followed, so a
    chain or a cycle of piggybacks can never loop. A dangling reference leaves
    the rule unchanged.
    """
    if rule.frequency != MONTHLY or not rule.piggyback_on:
        return rule

    reference = (zone_schedule or {}).get(rule.piggyback_on)
    if reference is None:
        logger.warning(f"Piggyback reference '{rule.piggyback_on}' not found; using the rule's own fields.")
        return rule
    return replace(rule, day_of_week=reference.day_of_week, start_date=reference.start_date)


def next_occurrence(rule: RecurrenceRule, today: date) -> date:
    """
    Returns the first collection date on or after `today`.

    Weekly rules return the next matching weekday, which is `today` itself when
    the weekdays agree. Biweekly rules skip the matching weekday when it falls
    in an odd week counted from the anchor date. Monthly rules return the
    first parity-aligned matching weekday of the current month, or of the next
    month when that one has already passed.

    The rule is used as given; call `resolve_rule` first for piggybacked rules.
    """
    day_of_week = rule.day_of_week % DAYS_PER_WEEK
    candidate = add_days(today, days_until_weekday(today, day_of_week))

    if rule.frequency == WEEKLY:
        return candidate

    if rule.frequency not in (BIWEEKLY, MONTHLY):
        logger.warning(f"Unknown frequency '{rule.frequency}'; treating the rule as weekly.")
        return candidate

    anchor = rule.anchor_date
    if anchor is None:
        logger.warning(
            f"{rule.frequency.capitalize()} rule has no usable start date "
            f"({rule.start_date!r}); falling back to the weekly date."
        )
        return candidate

    if rule.frequency == BIWEEKLY:
        return _align_to_anchor(candidate, anchor)

    for month_offset in MONTHLY_SEARCH_OFFSETS:
        month_start = first_of_month(today, month_offset)
        first_occurrence = add_days(month_start, days_until_weekday(month_start, day_of_week))
        first_occurrence = _align_to_anchor(first_occurrence, anchor)
        if first_occurrence >= today:
            return first_occurrence

    return candidate


def next_occurrence_in_zone(
    type_id: str, zone_schedule: Dict[str, RecurrenceRule], today: date
) -> Optional[date]:
    """Projects the zone's rule for `type_id`, resolving piggybacks. None if not collected."""
    rule = zone_schedule.get(type_id)
    if rule is None:
        return None
    return next_occurrence(resolve_rule(rule, zone_schedule), today)


def iter_occurrences(rule: RecurrenceRule, start: date, until: date) -> Iterator[date]:
    """Yields every projected date from `start` through `until`, in order."""
    current = next_occurrence(rule, start)
    while current <= until:
        yield current
        following = next_occurrence(rule, add_days(current, 1))
        if following <= current:
            # Projection always moves forward; stop rather than loop.
            logger.error(f"Projection did not advance past {current.isoformat()}; stopping.")
            return
        current = following
