"""
Unit tests for the schedule document models.
"""
import pytest

from collection_schedule.exceptions import ParsingError
from collection_schedule.models import (
    CollectionType,
    RecurrenceRule,
    ScheduleData,
    SpecialCollection,
    Zone,
)

SAMPLE_DOCUMENT = {
    "collectionTypes": [
        {"id": "recycling", "name": {"en": "Recycling", "fr": "Recyclage"}, "color": "#2E86AB"},
        {"id": "garbage", "name": {"en": "Garbage", "fr": "Ordures"}, "color": "#4A4A4A"},
    ],
    "zones": [
        {"id": "east", "name": {"en": "East", "fr": "Est"}},
        {"id": "west", "nameEn": "West", "nameFr": "Ouest"},
    ],
    "schedules": {
        "east": {
            "recycling": {"dayOfWeek": 2, "frequency": "Weekly"},
            "garbage": {"dayOfWeek": 4, "frequency": "biweekly", "startDate": "2024-01-04"},
        },
        "west": {
            "recycling": {"dayOfWeek": "three"},
            "garbage": {"dayOfWeek": 5},
        },
    },
    "specialCollections": [
        {"id": "hhw", "date": "2024-05-04", "customName": {"en": "Hazardous waste", "fr": "RDD"}},
        {"date": "2024-06-01"},
    ],
    "guidelines": {"timing": {"en": "Before 7 AM"}, "position": {"en": ["Lid closed"]}},
    "zoneMapUrl": "https://example.org/zones.png",
}


def test_from_dict_reads_the_document():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)

    assert [t.id for t in schedule.collection_types] == ["recycling", "garbage"]
    assert schedule.find_zone("west").name == {"en": "West", "fr": "Ouest"}
    rule = schedule.zone_schedule("east")["garbage"]
    assert rule.day_of_week == 4
    assert rule.frequency == "biweekly"
    assert rule.start_date == "2024-01-04"
    assert schedule.zone_schedule("east")["recycling"].frequency == "weekly"
    assert schedule.guidelines.position == {"en": ["Lid closed"]}
    assert schedule.zone_map_url == "https://example.org/zones.png"


def test_from_dict_skips_malformed_entries():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)

    assert set(schedule.zone_schedule("west")) == {"garbage"}
    assert [s.id for s in schedule.special_collections] == ["hhw"]


def test_from_dict_rejects_non_documents():
    with pytest.raises(ParsingError):
        ScheduleData.from_dict(["not", "a", "document"])
    with pytest.raises(ParsingError):
        ScheduleData.from_dict({"zones": [{"name": {"en": "No id"}}]})


def test_to_dict_uses_document_keys():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)
    document = schedule.to_dict()

    assert document["schedules"]["east"]["garbage"] == {
        "dayOfWeek": 4,
        "frequency": "biweekly",
        "startDate": "2024-01-04",
    }
    assert document["specialCollections"][0]["customName"] == {"en": "Hazardous waste", "fr": "RDD"}
    assert ScheduleData.from_dict(document).to_dict() == document


def test_hash_changes_with_content():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)
    original = schedule.compute_hash()
    assert ScheduleData.from_dict(SAMPLE_DOCUMENT).compute_hash() == original

    schedule.set_rule("west", "recycling", RecurrenceRule(day_of_week=3))
    assert schedule.compute_hash() != original


def test_rule_from_dict_requires_an_integer_day():
    with pytest.raises(ParsingError):
        RecurrenceRule.from_dict({"frequency": "weekly"})
    assert RecurrenceRule.from_dict({"dayOfWeek": "3"}).day_of_week == 3


def test_special_collection_date_is_parsed_lazily():
    item = SpecialCollection.from_dict({"id": "x", "date": "2024-13-01"})
    assert item.date == "2024-13-01"
    assert item.collection_date is None
    assert item.active is True


def test_remove_collection_type_cascades_to_every_zone():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)

    assert schedule.remove_collection_type("garbage") is True
    assert schedule.find_collection_type("garbage") is None
    assert "garbage" not in schedule.zone_schedule("east")
    assert "garbage" not in schedule.zone_schedule("west")
    assert schedule.remove_collection_type("garbage") is False


def test_new_zone_gets_an_empty_schedule():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)
    schedule.upsert_zone(Zone(id="north", name={"en": "North"}))

    assert schedule.schedules["north"] == {}

    schedule.upsert_zone(Zone(id="north", name={"en": "North", "fr": "Nord"}))
    assert len(schedule.zones) == 3
    assert schedule.find_zone("north").name["fr"] == "Nord"


def test_remove_zone_deletes_its_rules():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)

    assert schedule.remove_zone("east") is True
    assert "east" not in schedule.schedules
    assert schedule.zone_schedule("east") == {}


def test_upsert_collection_type_replaces_in_place():
    schedule = ScheduleData.from_dict(SAMPLE_DOCUMENT)
    schedule.upsert_collection_type(CollectionType(id="recycling", name={"en": "Blue box"}))

    assert [t.id for t in schedule.collection_types] == ["recycling", "garbage"]
    assert schedule.find_collection_type("recycling").name == {"en": "Blue box"}
