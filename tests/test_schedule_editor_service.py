"""
Unit tests for the ScheduleEditorService, against a temporary database.
"""
import pytest

from collection_schedule.exceptions import ScheduleNotFoundError, ScheduleValidationError
from collection_schedule.models import (
    CollectionType,
    RecurrenceRule,
    ScheduleData,
    SpecialCollection,
    Zone,
)
from collection_schedule.services.persistence_service import PersistenceService
from collection_schedule.services.schedule_editor_service import ScheduleEditorService

MID = "saint-lazare"


@pytest.fixture
def editor(tmp_path):
    persistence = PersistenceService(db_path=str(tmp_path / "editor.db"))
    with persistence as p:
        p.init_db()
    editor = ScheduleEditorService(persistence)
    editor.provision_municipality(MID)
    return editor


def test_provision_creates_default_types_and_zone(editor):
    schedule = editor.load(MID)

    assert [t.id for t in schedule.collection_types] == ["recycling", "compost", "garbage"]
    assert schedule.find_collection_type("recycling").color == "#2E86AB"
    assert schedule.find_collection_type("compost").bin_size == "80L"
    assert [z.id for z in schedule.zones] == ["default"]
    assert schedule.schedules == {"default": {}}


def test_provision_keeps_an_existing_document(editor):
    editor.toggle_type_for_zone(MID, "default", "garbage", True)
    schedule = editor.provision_municipality(MID)
    assert "garbage" in schedule.zone_schedule("default")


def test_load_unknown_municipality(editor):
    with pytest.raises(ScheduleNotFoundError):
        editor.load("nowhere")


def test_toggle_type_for_zone(editor):
    schedule = editor.toggle_type_for_zone(MID, "default", "recycling", True)
    rule = schedule.zone_schedule("default")["recycling"]
    assert (rule.day_of_week, rule.frequency, rule.time) == (1, "weekly", "07:00")

    editor.toggle_type_for_zone(MID, "default", "recycling", False)
    assert "recycling" not in editor.load(MID).zone_schedule("default")


def test_toggle_unknown_type(editor):
    with pytest.raises(ScheduleNotFoundError):
        editor.toggle_type_for_zone(MID, "default", "glass", True)


def test_set_rule_validates(editor):
    with pytest.raises(ScheduleValidationError) as exc_info:
        editor.set_rule(MID, "default", "garbage", RecurrenceRule(day_of_week=4, frequency="biweekly"))
    assert exc_info.value.problems == ["garbage: biweekly rules need a startDate."]
    assert editor.load(MID).zone_schedule("default") == {}

    rule = RecurrenceRule(day_of_week=4, frequency="biweekly", start_date="2024-01-04")
    editor.set_rule(MID, "default", "garbage", rule)
    assert editor.load(MID).zone_schedule("default")["garbage"] == rule


def test_delete_collection_type_keeps_piggybacked_dates(editor):
    editor.save_collection_type(MID, CollectionType(id="bulky", name={"en": "Bulky items"}))
    editor.set_rule(MID, "default", "garbage", RecurrenceRule(day_of_week=4, frequency="biweekly", start_date="2024-01-04"))
    editor.set_rule(MID, "default", "bulky", RecurrenceRule(day_of_week=1, frequency="monthly", piggyback_on="garbage"))
    editor.save_special_collection(MID, SpecialCollection(id="extra", date="2024-02-01", collection_type_id="garbage"))

    schedule = editor.delete_collection_type(MID, "garbage")

    assert schedule.find_collection_type("garbage") is None
    bulky = schedule.zone_schedule("default")["bulky"]
    assert (bulky.day_of_week, bulky.start_date, bulky.piggyback_on) == (4, "2024-01-04", None)
    assert schedule.special_collections == []
    assert editor.load(MID).to_dict() == schedule.to_dict()


def test_delete_unknown_collection_type(editor):
    with pytest.raises(ScheduleNotFoundError):
        editor.delete_collection_type(MID, "glass")


def test_save_zone_requires_an_english_name(editor):
    with pytest.raises(ScheduleValidationError):
        editor.save_zone(MID, Zone(id="north", name={"fr": "Nord"}))


def test_delete_zone_cascades(editor):
    editor.save_zone(MID, Zone(id="north", name={"en": "North", "fr": "Nord"}))
    editor.toggle_type_for_zone(MID, "north", "compost", True)
    editor.save_special_collection(
        MID, SpecialCollection(id="north-only", date="2024-02-01", custom_name={"en": "Leaves", "fr": "Feuilles"}, zones=["north"])
    )
    editor.save_special_collection(
        MID, SpecialCollection(id="both", date="2024-02-02", custom_name={"en": "Trees", "fr": "Sapins"}, zones=["north", "default"])
    )

    schedule = editor.delete_zone(MID, "north")

    assert schedule.find_zone("north") is None
    assert "north" not in schedule.schedules
    north_only = schedule.find_special_collection("north-only")
    assert north_only.zones == [] and north_only.active is False
    assert schedule.find_special_collection("both").zones == ["default"]


def test_last_zone_cannot_be_deleted(editor):
    with pytest.raises(ScheduleValidationError):
        editor.delete_zone(MID, "default")
    assert editor.load(MID).find_zone("default") is not None


def test_special_collections_are_validated(editor):
    with pytest.raises(ScheduleValidationError):
        editor.save_special_collection(MID, SpecialCollection(id="x", date="", collection_type_id="garbage"))
    with pytest.raises(ScheduleValidationError):
        editor.save_special_collection(MID, SpecialCollection(id="x", date="2024-02-01", custom_name={"en": "Only English"}))

    editor.save_special_collection(MID, SpecialCollection(id="x", date="2024-02-01", collection_type_id="garbage"))
    assert editor.load(MID).find_special_collection("x") is not None

    editor.delete_special_collection(MID, "x")
    with pytest.raises(ScheduleNotFoundError):
        editor.delete_special_collection(MID, "x")


def test_save_rejects_an_invalid_document(editor):
    with pytest.raises(ScheduleValidationError):
        editor.save(MID, ScheduleData())
    assert editor.load(MID).zones


@pytest.fixture
def stored_with_bad_rule(editor):
    """A synced document whose west zone has a biweekly rule without an anchor."""
    schedule = ScheduleData.from_dict(
        {
            "collectionTypes": [{"id": "garbage", "name": {"en": "Garbage", "fr": "Ordures"}}],
            "zones": [{"id": "east", "name": {"en": "East"}}, {"id": "west", "name": {"en": "West"}}],
            "schedules": {"east": {}, "west": {"garbage": {"dayOfWeek": 4, "frequency": "biweekly"}}},
            "specialCollections": [
                {"id": "hhw", "date": "2024-01-20", "customName": {"en": "Hazardous waste", "fr": "RDD"}}
            ],
        }
    )
    with editor.persistence as p:
        p.upsert_schedule("m", schedule)
    return editor


def test_existing_problem_does_not_block_unrelated_edits(stored_with_bad_rule):
    editor = stored_with_bad_rule

    editor.delete_special_collection("m", "hhw")
    editor.toggle_type_for_zone("m", "east", "garbage", True)

    schedule = editor.load("m")
    assert schedule.special_collections == []
    assert schedule.zone_schedule("east")["garbage"].frequency == "weekly"
    assert schedule.zone_schedule("west")["garbage"].start_date is None


def test_existing_problem_can_be_repaired(stored_with_bad_rule):
    editor = stored_with_bad_rule

    rule = RecurrenceRule(day_of_week=4, frequency="biweekly", start_date="2024-01-04")
    editor.set_rule("m", "west", "garbage", rule)

    assert editor.load("m").zone_schedule("west")["garbage"] == rule


def test_edit_introducing_a_problem_is_rejected(stored_with_bad_rule):
    editor = stored_with_bad_rule

    unanchored = RecurrenceRule(day_of_week=2, frequency="monthly")
    with pytest.raises(ScheduleValidationError) as exc_info:
        editor._edit("m", lambda s: s.set_rule("east", "garbage", unanchored))

    # Only the new problem is reported, and nothing is stored.
    assert exc_info.value.problems == ["zone 'east', garbage: monthly rules need a startDate."]
    assert editor.load("m").zone_schedule("east") == {}
