"""
Unit tests for the NotificationService.
"""
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from collection_schedule.models import ScheduleData
from collection_schedule.services.notification_service import NotificationService

SCHEDULE = ScheduleData.from_dict(
    {
        "collectionTypes": [
            {"id": "recycling", "name": {"en": "Recycling", "fr": "Recyclage"},
             "binName": {"en": "Blue Bin", "fr": "Bac bleu"}},
            {"id": "garbage", "name": {"en": "Garbage", "fr": "Ordures"},
             "binName": {"en": "Black Bin", "fr": "Bac noir"}},
        ],
        "zones": [{"id": "east", "name": {"en": "East"}}, {"id": "west", "name": {"en": "West"}}],
        "schedules": {
            "east": {
                "recycling": {"dayOfWeek": 2, "frequency": "weekly"},
                "garbage": {"dayOfWeek": 2, "frequency": "biweekly", "startDate": "2024-01-09"},
            },
            "west": {"recycling": {"dayOfWeek": 3, "frequency": "weekly"}},
        },
        "specialCollections": [
            {"id": "trees", "date": "2024-01-16", "customName": {"en": "Christmas trees", "fr": "Sapins"},
             "location": "Town hall", "zones": ["east"]},
            {"id": "hhw", "date": "2024-01-23", "customName": {"en": "Hazardous waste", "fr": "RDD"}},
        ],
    }
)


@pytest.fixture
def mock_persistence():
    mock = MagicMock()
    mock.__enter__.return_value = mock
    mock.__exit__.return_value = None
    mock.get_schedule.return_value = SCHEDULE
    return mock


def subscription(**overrides):
    sub = {
        "id": 1,
        "chat_id": 100,
        "municipality_id": "saint-lazare",
        "zone_id": "east",
        "language": "en",
        "reminder_hour": 19,
        "last_notified": None,
    }
    sub.update(overrides)
    return sub


def test_build_reminders_for_tomorrow():
    service = NotificationService(MagicMock())
    messages = service.build_reminders(SCHEDULE, "east", "en", date(2024, 1, 16))

    assert messages == [
        "🔵 Recycling tomorrow\nPut out your blue bin tonight.",
        "📅 Special: Christmas trees tomorrow\nDon't miss the christmas trees event at Town hall.",
    ]


def test_build_reminders_honours_biweekly_parity():
    service = NotificationService(MagicMock())
    # 2024-01-23 is on the garbage parity week, 2024-01-16 is not.
    messages = service.build_reminders(SCHEDULE, "east", "fr", date(2024, 1, 23))

    assert messages[0] == "🔵 Recyclage demain\nSortez votre bac bleu ce soir."
    assert messages[1] == "⚫ Ordures demain\nSortez votre bac noir ce soir."
    assert messages[2] == "📅 Spécial: RDD demain\nNe manquez pas l'événement rdd demain."


def test_build_reminders_nothing_due():
    service = NotificationService(MagicMock())
    assert service.build_reminders(SCHEDULE, "west", "en", date(2024, 1, 16)) == []


def test_get_due_notifications_after_reminder_hour(mock_persistence):
    mock_persistence.get_all_active_subscriptions.return_value = [subscription()]
    service = NotificationService(mock_persistence)

    tasks = service.get_due_notifications(now=datetime(2024, 1, 15, 19, 5))

    assert len(tasks) == 2
    assert tasks[0]["subscription_id"] == 1
    assert tasks[0]["chat_id"] == 100
    assert tasks[0]["collection_date"] == date(2024, 1, 16)
    mock_persistence.get_schedule.assert_called_once_with("saint-lazare")


def test_get_due_notifications_before_reminder_hour(mock_persistence):
    mock_persistence.get_all_active_subscriptions.return_value = [subscription()]
    service = NotificationService(mock_persistence)

    assert service.get_due_notifications(now=datetime(2024, 1, 15, 18, 59)) == []


def test_get_due_notifications_already_notified(mock_persistence):
    mock_persistence.get_all_active_subscriptions.return_value = [
        subscription(last_notified="2024-01-16"),
        subscription(id=2, chat_id=200, last_notified="2024-01-09"),
    ]
    service = NotificationService(mock_persistence)

    tasks = service.get_due_notifications(now=datetime(2024, 1, 15, 20, 0))

    assert {task["subscription_id"] for task in tasks} == {2}


def test_get_due_notifications_without_cached_schedule(mock_persistence):
    mock_persistence.get_schedule.return_value = None
    mock_persistence.get_all_active_subscriptions.return_value = [subscription()]
    service = NotificationService(mock_persistence)

    assert service.get_due_notifications(now=datetime(2024, 1, 15, 20, 0)) == []


def test_collection_emoji():
    service = NotificationService(MagicMock())
    assert service._get_collection_emoji("recycling") == "🔵"
    assert service._get_collection_emoji("organics") == "🟤"
    assert service._get_collection_emoji("garbage") == "⚫"
    assert service._get_collection_emoji("bulky") == "🗑️"


def test_notification_log_round_trip(mock_persistence):
    mock_persistence.create_notification_log.return_value = 7
    service = NotificationService(mock_persistence)

    assert service.log_pending_notification(1) == 7
    service.update_notification_log(7, "failure", "blocked")

    mock_persistence.create_notification_log.assert_called_once_with(1, "pending")
    mock_persistence.update_notification_log_status.assert_called_once_with(7, "failure", "blocked")
