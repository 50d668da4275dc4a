import logging
from datetime import date

from collection_schedule.i18n import localize
from collection_schedule.labels import display_label
from collection_schedule.models import ScheduleData
from collection_schedule.overview import build_schedule_cards
from collection_schedule.services.persistence_service import PersistenceService
from collection_schedule.services.schedule_editor_service import ScheduleEditorService
from collection_schedule.upcoming import combined_upcoming_collections

# --- Configuration ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

MUNICIPALITY_ID = "saint-lazare"
ZONE_ID = "east"
LOCALE = "fr"
TODAY = date(2026, 1, 14)

# Database Path: Where the schedule document will be stored.
DB_PATH = "civickey_example.db"

SAMPLE_SCHEDULE = {
    "collectionTypes": [
        {"id": "recycling", "name": {"en": "Recycling", "fr": "Recyclage"},
         "binName": {"en": "Blue Bin", "fr": "Bac bleu"}, "color": "#2E86AB"},
        {"id": "compost", "name": {"en": "Compost", "fr": "Compost"},
         "binName": {"en": "Brown Bin", "fr": "Bac brun"}, "color": "#8B5A2B"},
        {"id": "garbage", "name": {"en": "Garbage", "fr": "Ordures"},
         "binName": {"en": "Black Bin", "fr": "Bac noir"}, "color": "#4A4A4A"},
    ],
    "zones": [
        {"id": "east", "name": {"en": "East", "fr": "Est"}},
        {"id": "west", "name": {"en": "West", "fr": "Ouest"}},
    ],
    "schedules": {
        "east": {
            "recycling": {"dayOfWeek": 2, "frequency": "weekly"},
            "compost": {"dayOfWeek": 4, "frequency": "weekly"},
            "garbage": {"dayOfWeek": 4, "frequency": "biweekly", "startDate": "2026-01-08"},
        },
        "west": {
            "recycling": {"dayOfWeek": 3, "frequency": "weekly"},
            "compost": {"dayOfWeek": 5, "frequency": "weekly"},
            "garbage": {"dayOfWeek": 5, "frequency": "biweekly", "startDate": "2026-01-09"},
        },
    },
    "specialCollections": [
        {"id": "hhw-spring", "date": "2026-01-17",
         "customName": {"en": "Hazardous waste", "fr": "Résidus dangereux"},
         "location": "Municipal Garage / Garage municipal"},
    ],
}


def main():
    """
    Stores the sample schedule and prints what a resident of one zone sees.
    """
    logging.info(f"--- Collection Schedule Example ---")
    logging.info(f"Municipality: {MUNICIPALITY_ID}, zone: {ZONE_ID}, locale: {LOCALE}")

    with PersistenceService(DB_PATH) as p:
        p.init_db()
    editor = ScheduleEditorService(PersistenceService(DB_PATH))
    editor.save(MUNICIPALITY_ID, ScheduleData.from_dict(SAMPLE_SCHEDULE))
    schedule = editor.load(MUNICIPALITY_ID)

    for card in build_schedule_cards(schedule, ZONE_ID, LOCALE, TODAY):
        logging.info(f"{card['name']}: {card['day']} ({card['frequency_label']}) -> {card['next_label']}")

    for item in combined_upcoming_collections(schedule, ZONE_ID, TODAY):
        logging.info(f"Upcoming: {localize(item.name, LOCALE)} {display_label(item.date, TODAY, LOCALE)}")

if __name__ == "__main__":
    main()
