"""
This module defines the ScheduleEditorService used by municipal staff.

Every edit loads the stored document, applies the change, and stores it
again unless the change introduced a problem. Whole-document saves are
validated in full.
"""
import logging
from typing import Callable

from ..exceptions import ScheduleNotFoundError, ScheduleValidationError
from ..models import (
    DEFAULT_ZONE_ID,
    WEEKLY,
    CollectionType,
    RecurrenceRule,
    ScheduleData,
    SpecialCollection,
    Zone,
)
from ..validation import (
    schedule_problems,
    validate_rule,
    validate_schedule,
    validate_special_collection,
)
from .persistence_service import PersistenceService

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_TYPES = [
    {
        "id": "recycling",
        "name": {"en": "Recycling", "fr": "Recyclage"},
        "binName": {"en": "Blue Bin", "fr": "Bac bleu"},
        "color": "#2E86AB",
        "binSize": "360L",
    },
    {
        "id": "compost",
        "name": {"en": "Compost", "fr": "Compost"},
        "binName": {"en": "Brown Bin", "fr": "Bac brun"},
        "color": "#8B5A2B",
        "binSize": "80L",
    },
    {
        "id": "garbage",
        "name": {"en": "Garbage", "fr": "Ordures"},
        "binName": {"en": "Black Bin", "fr": "Bac noir"},
        "color": "#4A4A4A",
        "binSize": "240L",
    },
]

DEFAULT_ZONE = {"id": DEFAULT_ZONE_ID, "name": {"en": "Default zone", "fr": "Zone par défaut"}}


def new_rule() -> RecurrenceRule:
    """The rule a type gets when it is first enabled for a zone."""
    return RecurrenceRule(day_of_week=1, frequency=WEEKLY, time="07:00")


def default_schedule() -> ScheduleData:
    """A freshly provisioned municipality: the three standard streams and one zone."""
    return ScheduleData.from_dict(
        {
            "collectionTypes": DEFAULT_COLLECTION_TYPES,
            "zones": [DEFAULT_ZONE],
            "schedules": {DEFAULT_ZONE_ID: {}},
        }
    )


class ScheduleEditorService:
    """Admin operations on a municipality's schedule document."""

    def __init__(self, persistence_service: PersistenceService):
        self.persistence = persistence_service

    def load(self, municipality_id: str) -> ScheduleData:
        """
        Raises:
            ScheduleNotFoundError: If the municipality has not been provisioned.
        """
        with self.persistence as p:
            schedule = p.get_schedule(municipality_id)
        if schedule is None:
            raise ScheduleNotFoundError(f"No schedule for municipality '{municipality_id}'.")
        return schedule

    def save(self, municipality_id: str, schedule: ScheduleData) -> bool:
        """
        Validates and stores a whole document.

        Raises:
            ScheduleValidationError: If the document breaks an invariant.
        """
        validate_schedule(schedule)
        with self.persistence as p:
            changed = p.upsert_schedule(municipality_id, schedule)
        logger.info(f"Saved schedule for {municipality_id} (changed={changed}).")
        return changed

    def provision_municipality(self, municipality_id: str) -> ScheduleData:
        """Creates the default document unless one already exists."""
        with self.persistence as p:
            existing = p.get_schedule(municipality_id)
            if existing is not None:
                return existing
            schedule = default_schedule()
            p.upsert_schedule(municipality_id, schedule)
        logger.info(f"Provisioned municipality {municipality_id} with the default zone.")
        return schedule

    def _edit(self, municipality_id: str, change: Callable[[ScheduleData], None]) -> ScheduleData:
        """
        Applies one change to the stored document.

        Only problems the change introduces are rejected; violations already
        present in the stored document (e.g. from a synced download) do not
        block unrelated edits or the edits that repair them.

        Raises:
            ScheduleValidationError: If the change adds a problem.
        """
        schedule = self.load(municipality_id)
        existing = set(schedule_problems(schedule))
        change(schedule)
        introduced = [p for p in schedule_problems(schedule) if p not in existing]
        if introduced:
            raise ScheduleValidationError(introduced)
        if existing:
            logger.warning(
                f"Schedule for {municipality_id} still has {len(existing)} problem(s): {'; '.join(sorted(existing))}"
            )
        with self.persistence as p:
            p.upsert_schedule(municipality_id, schedule)
        return schedule

    # --- Collection types ---

    def save_collection_type(self, municipality_id: str, collection_type: CollectionType) -> ScheduleData:
        return self._edit(municipality_id, lambda s: s.upsert_collection_type(collection_type))

    def delete_collection_type(self, municipality_id: str, type_id: str) -> ScheduleData:
        """Deletes a type and removes it from every zone's schedule."""

        def change(schedule: ScheduleData) -> None:
            if schedule.find_collection_type(type_id) is None:
                raise ScheduleNotFoundError(f"Unknown collection type '{type_id}'.")
            for zone_rules in schedule.schedules.values():
                reference = zone_rules.get(type_id)
                for rule in zone_rules.values():
                    if rule.piggyback_on != type_id:
                        continue
                    # Piggybacking rules keep the dates residents already see.
                    if reference is not None:
                        rule.day_of_week = reference.day_of_week
                        rule.start_date = reference.start_date
                    rule.piggyback_on = None
            schedule.remove_collection_type(type_id)
            schedule.special_collections = [
                s for s in schedule.special_collections if s.collection_type_id != type_id
            ]

        schedule = self._edit(municipality_id, change)
        logger.info(f"Deleted collection type {type_id} from {municipality_id}.")
        return schedule

    # --- Zones ---

    def save_zone(self, municipality_id: str, zone: Zone) -> ScheduleData:
        if not zone.id or not zone.name.get("en"):
            raise ScheduleValidationError(["a zone needs an id and an English name."])
        return self._edit(municipality_id, lambda s: s.upsert_zone(zone))

    def delete_zone(self, municipality_id: str, zone_id: str) -> ScheduleData:
        """Deletes a zone and its rules. The last zone cannot be deleted."""

        def change(schedule: ScheduleData) -> None:
            if schedule.find_zone(zone_id) is None:
                raise ScheduleNotFoundError(f"Unknown zone '{zone_id}'.")
            if len(schedule.zones) == 1:
                raise ScheduleValidationError(["a municipality needs at least one zone."])
            schedule.remove_zone(zone_id)
            for item in schedule.special_collections:
                if zone_id in item.zones:
                    item.zones = [z for z in item.zones if z != zone_id]
                    if not item.zones:
                        # It no longer applies anywhere; an empty list would mean everywhere.
                        item.active = False

        schedule = self._edit(municipality_id, change)
        logger.info(f"Deleted zone {zone_id} from {municipality_id}.")
        return schedule

    # --- Rules ---

    def toggle_type_for_zone(
        self, municipality_id: str, zone_id: str, type_id: str, enabled: bool
    ) -> ScheduleData:
        """Enabling seeds a weekly Monday 07:00 rule; disabling deletes the rule."""

        def change(schedule: ScheduleData) -> None:
            if schedule.find_zone(zone_id) is None:
                raise ScheduleNotFoundError(f"Unknown zone '{zone_id}'.")
            if schedule.find_collection_type(type_id) is None:
                raise ScheduleNotFoundError(f"Unknown collection type '{type_id}'.")
            if enabled:
                if type_id not in schedule.zone_schedule(zone_id):
                    schedule.set_rule(zone_id, type_id, new_rule())
            else:
                schedule.remove_rule(zone_id, type_id)

        return self._edit(municipality_id, change)

    def set_rule(
        self, municipality_id: str, zone_id: str, type_id: str, rule: RecurrenceRule
    ) -> ScheduleData:
        def change(schedule: ScheduleData) -> None:
            if schedule.find_zone(zone_id) is None:
                raise ScheduleNotFoundError(f"Unknown zone '{zone_id}'.")
            if schedule.find_collection_type(type_id) is None:
                raise ScheduleNotFoundError(f"Unknown collection type '{type_id}'.")
            validate_rule(rule, schedule.zone_schedule(zone_id), type_id)
            schedule.set_rule(zone_id, type_id, rule)

        return self._edit(municipality_id, change)

    # --- Special collections ---

    def save_special_collection(self, municipality_id: str, item: SpecialCollection) -> ScheduleData:
        def change(schedule: ScheduleData) -> None:
            validate_special_collection(item, schedule)
            schedule.upsert_special_collection(item)

        return self._edit(municipality_id, change)

    def delete_special_collection(self, municipality_id: str, special_id: str) -> ScheduleData:
        def change(schedule: ScheduleData) -> None:
            if not schedule.remove_special_collection(special_id):
                raise ScheduleNotFoundError(f"Unknown special collection '{special_id}'.")

        return self._edit(municipality_id, change)
