"""
This module validates schedules at the admin-editing boundary.

Each `*_problems` function returns a list of human-readable violations; the
`validate_*` wrappers raise ScheduleValidationError when that list is not
empty. Projection code never calls these: it tolerates bad data instead.
"""
import re
from typing import Dict, List, Optional

from .dates import day_of_week, parse_local_date
from .exceptions import ScheduleValidationError
from .i18n import weekday_name
from .models import (
    BIWEEKLY,
    FREQUENCIES,
    MONTHLY,
    RecurrenceRule,
    ScheduleData,
    SpecialCollection,
)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def rule_problems(
    rule: RecurrenceRule,
    zone_schedule: Optional[Dict[str, RecurrenceRule]] = None,
    type_id: Optional[str] = None,
) -> List[str]:
    problems = []
    prefix = f"{type_id}: " if type_id else ""

    if isinstance(rule.day_of_week, bool) or not isinstance(rule.day_of_week, int) or not 0 <= rule.day_of_week <= 6:
        problems.append(f"{prefix}dayOfWeek must be an integer from 0 (Sunday) to 6, got {rule.day_of_week!r}.")
    if rule.frequency not in FREQUENCIES:
        problems.append(f"{prefix}frequency must be one of {', '.join(FREQUENCIES)}, got {rule.frequency!r}.")

    anchor = rule.anchor_date
    if rule.start_date and anchor is None:
        problems.append(f"{prefix}startDate {rule.start_date!r} is not a YYYY-MM-DD date.")

    if rule.piggyback_on:
        if rule.frequency != MONTHLY:
            problems.append(f"{prefix}piggybackOn is only allowed on monthly rules.")
        elif type_id and rule.piggyback_on == type_id:
            problems.append(f"{prefix}a rule cannot piggyback on itself.")
        elif zone_schedule is not None:
            piggyback_reference = zone_schedule.get(rule.piggyback_on)
            if piggyback_reference is None:
                problems.append(f"{prefix}piggybackOn references '{rule.piggyback_on}', which is not collected in this zone.")
            elif piggyback_reference.anchor_date is None:
                problems.append(f"{prefix}piggybackOn references '{rule.piggyback_on}', which has no start date.")

    if rule.frequency in (BIWEEKLY, MONTHLY) and not rule.piggyback_on:
        if not rule.start_date:
            problems.append(f"{prefix}{rule.frequency} rules need a startDate.")
        elif anchor is not None and not problems and day_of_week(anchor) != rule.day_of_week:
            problems.append(
                f"{prefix}startDate {rule.start_date} is a {weekday_name(day_of_week(anchor), 'en')}, "
                f"not a {weekday_name(rule.day_of_week, 'en')}."
            )

    for label, value in (("time", rule.time), ("endTime", rule.end_time)):
        if value and not TIME_PATTERN.match(value):
            problems.append(f"{prefix}{label} {value!r} is not HH:MM.")
    return problems


def validate_rule(
    rule: RecurrenceRule,
    zone_schedule: Optional[Dict[str, RecurrenceRule]] = None,
    type_id: Optional[str] = None,
) -> None:
    """
    Raises:
        ScheduleValidationError: If the rule is not acceptable.
    """
    problems = rule_problems(rule, zone_schedule, type_id)
    if problems:
        raise ScheduleValidationError(problems)


def special_collection_problems(item: SpecialCollection, schedule: Optional[ScheduleData] = None) -> List[str]:
    problems = []
    prefix = f"{item.id}: "

    if not item.date:
        problems.append(f"{prefix}a date is required.")
    elif parse_local_date(item.date) is None:
        problems.append(f"{prefix}date {item.date!r} is not a YYYY-MM-DD date.")

    has_type = bool(item.collection_type_id)
    has_custom_name = bool(item.custom_name and item.custom_name.get("en") and item.custom_name.get("fr"))
    if has_type and item.custom_name:
        problems.append(f"{prefix}use either a collection type or a custom name, not both.")
    elif not has_type and not has_custom_name:
        problems.append(f"{prefix}select a collection type or provide custom names in both languages.")

    if schedule is not None:
        if has_type and schedule.find_collection_type(item.collection_type_id) is None:
            problems.append(f"{prefix}unknown collection type '{item.collection_type_id}'.")
        for zone_id in item.zones:
            if schedule.find_zone(zone_id) is None:
                problems.append(f"{prefix}unknown zone '{zone_id}'.")

    for label, value in (("time", item.time), ("endTime", item.end_time)):
        if value and not TIME_PATTERN.match(value):
            problems.append(f"{prefix}{label} {value!r} is not HH:MM.")
    return problems


def validate_special_collection(item: SpecialCollection, schedule: Optional[ScheduleData] = None) -> None:
    problems = special_collection_problems(item, schedule)
    if problems:
        raise ScheduleValidationError(problems)


def schedule_problems(schedule: ScheduleData) -> List[str]:
    """Checks a whole document: ids, references, every rule and special collection."""
    problems = []

    if not schedule.zones:
        problems.append("a municipality needs at least one zone.")

    for label, ids in (
        ("collection type", [t.id for t in schedule.collection_types]),
        ("zone", [z.id for z in schedule.zones]),
        ("special collection", [s.id for s in schedule.special_collections]),
    ):
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        for duplicate in duplicates:
            problems.append(f"duplicate {label} id '{duplicate}'.")

    type_ids = {t.id for t in schedule.collection_types}
    zone_ids = {z.id for z in schedule.zones}
    for zone_id, zone_schedule in schedule.schedules.items():
        if zone_id not in zone_ids:
            problems.append(f"schedule for unknown zone '{zone_id}'.")
            continue
        for type_id, rule in zone_schedule.items():
            if type_id not in type_ids:
                problems.append(f"zone '{zone_id}' schedules unknown collection type '{type_id}'.")
                continue
            problems.extend(f"zone '{zone_id}', {p}" for p in rule_problems(rule, zone_schedule, type_id))

    for item in schedule.special_collections:
        problems.extend(special_collection_problems(item, schedule))
    return problems


def validate_schedule(schedule: ScheduleData) -> None:
    """
    Raises:
        ScheduleValidationError: With every problem found in the document.
    """
    problems = schedule_problems(schedule)
    if problems:
        raise ScheduleValidationError(problems)
