"""
This module defines the data models for a municipality's collection schedule.

The `from_dict` / `to_dict` pairs read and write the camelCase documents kept
in the document store.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .dates import parse_local_date
from .exceptions import ParsingError

logger = logging.getLogger(__name__)

WEEKLY = "weekly"
BIWEEKLY = "biweekly"
MONTHLY = "monthly"
FREQUENCIES = (WEEKLY, BIWEEKLY, MONTHLY)

DEFAULT_ZONE_ID = "default"
DEFAULT_COLOR = "#888888"


def _bilingual(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, str) and value:
        return {"en": value}
    return {}


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class CollectionType:
    """A waste stream: recycling, compost, garbage or a custom one."""

    id: str
    name: Dict[str, str] = field(default_factory=dict)
    bin_name: Dict[str, str] = field(default_factory=dict)
    color: str = DEFAULT_COLOR
    bin_size: str = ""
    accepted: Dict[str, List[str]] = field(default_factory=dict)
    not_accepted: Dict[str, List[str]] = field(default_factory=dict)
    tip: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectionType":
        if not data.get("id"):
            raise ParsingError("Collection type without an id.")
        return cls(
            id=str(data["id"]),
            name=_bilingual(data.get("name")),
            bin_name=_bilingual(data.get("binName")),
            color=data.get("color") or DEFAULT_COLOR,
            bin_size=data.get("binSize") or "",
            accepted=_bilingual(data.get("accepted")),
            not_accepted=_bilingual(data.get("notAccepted")),
            tip=_bilingual(data.get("tip")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "binName": self.bin_name,
            "color": self.color,
            "binSize": self.bin_size,
            "accepted": self.accepted,
            "notAccepted": self.not_accepted,
            "tip": self.tip,
        }


@dataclass
class Zone:
    """A geographic collection sector."""

    id: str
    name: Dict[str, str] = field(default_factory=dict)
    description: Dict[str, str] = field(default_factory=dict)
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Zone":
        if not data.get("id"):
            raise ParsingError("Zone without an id.")
        # The admin console stores flat nameEn/nameFr fields.
        name = _bilingual(data.get("name"))
        if not name:
            name = {k: v for k, v in (("en", data.get("nameEn")), ("fr", data.get("nameFr"))) if v}
        description = _bilingual(data.get("description"))
        if not description:
            description = {
                k: v
                for k, v in (("en", data.get("descriptionEn")), ("fr", data.get("descriptionFr")))
                if v
            }
        return cls(
            id=str(data["id"]),
            name=name,
            description=description,
            color=data.get("color") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"id": self.id, "name": self.name, "description": self.description}
        if self.color:
            result["color"] = self.color
        return result


@dataclass
class RecurrenceRule:
    """The schedule of one collection type in one zone."""

    day_of_week: int
    frequency: str = WEEKLY
    start_date: Optional[str] = None
    piggyback_on: Optional[str] = None
    time: Optional[str] = None
    end_time: Optional[str] = None

    @property
    def anchor_date(self) -> Optional[date]:
        """The parsed `start_date`, or None when missing or unparsable."""
        return parse_local_date(self.start_date)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecurrenceRule":
        try:
            day_of_week = int(data.get("dayOfWeek"))
        except (TypeError, ValueError) as e:
            raise ParsingError(f"Invalid dayOfWeek {data.get('dayOfWeek')!r}.") from e
        return cls(
            day_of_week=day_of_week,
            frequency=str(data.get("frequency") or WEEKLY).strip().lower(),
            start_date=_optional_str(data.get("startDate")),
            piggyback_on=_optional_str(data.get("piggybackOn")),
            time=_optional_str(data.get("time")),
            end_time=_optional_str(data.get("endTime")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"dayOfWeek": self.day_of_week, "frequency": self.frequency}
        for key, value in (
            ("startDate", self.start_date),
            ("piggybackOn", self.piggyback_on),
            ("time", self.time),
            ("endTime", self.end_time),
        ):
            if value is not None:
                result[key] = value
        return result


@dataclass
class SpecialCollection:
    """A one-off collection event layered on top of the regular schedule."""

    id: str
    date: str
    collection_type_id: Optional[str] = None
    custom_name: Optional[Dict[str, str]] = None
    custom_color: Optional[str] = None
    time: Optional[str] = None
    end_time: Optional[str] = None
    zones: List[str] = field(default_factory=list)
    description: Dict[str, str] = field(default_factory=dict)
    location: Optional[str] = None
    active: bool = True

    @property
    def collection_date(self) -> Optional[date]:
        return parse_local_date(self.date)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpecialCollection":
        if not data.get("id"):
            raise ParsingError("Special collection without an id.")
        custom_name = _bilingual(data.get("customName")) or None
        return cls(
            id=str(data["id"]),
            date=str(data.get("date") or ""),
            collection_type_id=_optional_str(data.get("collectionTypeId")),
            custom_name=custom_name,
            custom_color=_optional_str(data.get("customColor")),
            time=_optional_str(data.get("time")),
            end_time=_optional_str(data.get("endTime")),
            zones=[str(z) for z in data.get("zones") or []],
            description=_bilingual(data.get("description")),
            location=_optional_str(data.get("location")),
            active=bool(data.get("active", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "collectionTypeId": self.collection_type_id,
            "customName": self.custom_name,
            "customColor": self.custom_color,
            "time": self.time,
            "endTime": self.end_time,
            "zones": list(self.zones),
            "description": self.description,
            "location": self.location,
            "active": self.active,
        }


@dataclass
class Guidelines:
    """Bin placement guidance shown next to the schedule."""

    timing: Dict[str, str] = field(default_factory=dict)
    position: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Guidelines":
        data = data or {}
        return cls(timing=_bilingual(data.get("timing")), position=_bilingual(data.get("position")))

    def to_dict(self) -> Dict[str, Any]:
        return {"timing": self.timing, "position": self.position}


@dataclass
class ScheduleData:
    """A municipality's complete schedule document."""

    collection_types: List[CollectionType] = field(default_factory=list)
    zones: List[Zone] = field(default_factory=list)
    schedules: Dict[str, Dict[str, RecurrenceRule]] = field(default_factory=dict)
    special_collections: List[SpecialCollection] = field(default_factory=list)
    guidelines: Guidelines = field(default_factory=Guidelines)
    zone_map_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleData":
        """
        Builds a ScheduleData from a stored document.

        Malformed rules and special collections are skipped with a warning so
        that one bad entry never hides the rest of the schedule.

        Raises:
            ParsingError: If the document itself is not a mapping or a
                collection type or zone has no id.
        """
        if not isinstance(data, dict):
            raise ParsingError("Schedule document must be a JSON object.")

        schedules: Dict[str, Dict[str, RecurrenceRule]] = {}
        for zone_id, zone_rules in (data.get("schedules") or {}).items():
            schedules[zone_id] = {}
            for type_id, raw_rule in (zone_rules or {}).items():
                try:
                    schedules[zone_id][type_id] = RecurrenceRule.from_dict(raw_rule or {})
                except ParsingError as e:
                    logger.warning(f"Skipping rule {zone_id}/{type_id}: {e}")

        special_collections = []
        for raw in data.get("specialCollections") or []:
            try:
                special_collections.append(SpecialCollection.from_dict(raw))
            except ParsingError as e:
                logger.warning(f"Skipping special collection: {e}")

        return cls(
            collection_types=[CollectionType.from_dict(t) for t in data.get("collectionTypes") or []],
            zones=[Zone.from_dict(z) for z in data.get("zones") or []],
            schedules=schedules,
            special_collections=special_collections,
            guidelines=Guidelines.from_dict(data.get("guidelines")),
            zone_map_url=data.get("zoneMapUrl") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collectionTypes": [t.to_dict() for t in self.collection_types],
            "zones": [z.to_dict() for z in self.zones],
            "schedules": {
                zone_id: {type_id: rule.to_dict() for type_id, rule in rules.items()}
                for zone_id, rules in self.schedules.items()
            },
            "specialCollections": [s.to_dict() for s in self.special_collections],
            "guidelines": self.guidelines.to_dict(),
            "zoneMapUrl": self.zone_map_url,
        }

    def compute_hash(self) -> str:
        """SHA256 of the canonical JSON form, used to skip unchanged writes."""
        raw = json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    # --- Lookups ---

    def find_collection_type(self, type_id: str) -> Optional[CollectionType]:
        return next((t for t in self.collection_types if t.id == type_id), None)

    def find_zone(self, zone_id: str) -> Optional[Zone]:
        return next((z for z in self.zones if z.id == zone_id), None)

    def find_special_collection(self, special_id: str) -> Optional[SpecialCollection]:
        return next((s for s in self.special_collections if s.id == special_id), None)

    def zone_schedule(self, zone_id: str) -> Dict[str, RecurrenceRule]:
        return self.schedules.get(zone_id, {})

    # --- Admin mutations ---

    def upsert_collection_type(self, collection_type: CollectionType) -> None:
        for index, existing in enumerate(self.collection_types):
            if existing.id == collection_type.id:
                self.collection_types[index] = collection_type
                return
        self.collection_types.append(collection_type)

    def remove_collection_type(self, type_id: str) -> bool:
        """Deletes a collection type and every zone's rule for it."""
        before = len(self.collection_types)
        self.collection_types = [t for t in self.collection_types if t.id != type_id]
        for zone_rules in self.schedules.values():
            zone_rules.pop(type_id, None)
        return len(self.collection_types) != before

    def upsert_zone(self, zone: Zone) -> None:
        for index, existing in enumerate(self.zones):
            if existing.id == zone.id:
                self.zones[index] = zone
                return
        self.zones.append(zone)
        self.schedules.setdefault(zone.id, {})

    def remove_zone(self, zone_id: str) -> bool:
        """Deletes a zone together with all of its rules."""
        before = len(self.zones)
        self.zones = [z for z in self.zones if z.id != zone_id]
        self.schedules.pop(zone_id, None)
        return len(self.zones) != before

    def set_rule(self, zone_id: str, type_id: str, rule: RecurrenceRule) -> None:
        self.schedules.setdefault(zone_id, {})[type_id] = rule

    def remove_rule(self, zone_id: str, type_id: str) -> bool:
        return self.schedules.get(zone_id, {}).pop(type_id, None) is not None

    def upsert_special_collection(self, special: SpecialCollection) -> None:
        for index, existing in enumerate(self.special_collections):
            if existing.id == special.id:
                self.special_collections[index] = special
                return
        self.special_collections.append(special)

    def remove_special_collection(self, special_id: str) -> bool:
        before = len(self.special_collections)
        self.special_collections = [s for s in self.special_collections if s.id != special_id]
        return len(self.special_collections) != before


@dataclass
class UpcomingCollection:
    """One row of the combined upcoming-collections list."""

    kind: str  # "regular" or "special"
    date: date
    name: Dict[str, str]
    color: str
    collection_type_id: Optional[str] = None
    rule: Optional[RecurrenceRule] = None
    special: Optional[SpecialCollection] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "date": self.date.isoformat(),
            "name": self.name,
            "color": self.color,
            "collectionTypeId": self.collection_type_id,
            "schedule": self.rule.to_dict() if self.rule else None,
            "special": self.special.to_dict() if self.special else None,
        }
