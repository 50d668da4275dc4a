"""
Unit tests for the SubscriptionService.
"""

from unittest.mock import MagicMock

from collection_schedule.services.subscription_service import SubscriptionService


def test_add_or_reactivate_subscription_new():
    """Tests adding a completely new subscription."""
    mock_persistence = MagicMock()
    mock_persistence.__enter__.return_value.find_subscription_by_chat_and_municipality.return_value = None
    service = SubscriptionService(persistence_service=mock_persistence)

    service.add_or_reactivate_subscription(1, "saint-lazare", "east", "fr")

    mock_persistence.__enter__.return_value.create_subscription.assert_called_once_with(
        1, "saint-lazare", "east", "fr", 19
    )
    mock_persistence.__enter__.return_value.reactivate_subscription.assert_not_called()


def test_add_or_reactivate_subscription_existing_moves_zone():
    """Subscribing again to the same municipality updates the existing row."""
    mock_persistence = MagicMock()
    mock_persistence.__enter__.return_value.find_subscription_by_chat_and_municipality.return_value = {
        "id": 99
    }
    service = SubscriptionService(persistence_service=mock_persistence)

    service.add_or_reactivate_subscription(1, "saint-lazare", "west", "en", reminder_hour=18)

    mock_persistence.__enter__.return_value.create_subscription.assert_not_called()
    mock_persistence.__enter__.return_value.reactivate_subscription.assert_called_once_with(
        99, "west", "en", 18
    )


def test_get_user_subscriptions():
    mock_persistence = MagicMock()
    mock_persistence.__enter__.return_value.get_subscriptions_by_chat_id.return_value = [{"id": 1}]
    service = SubscriptionService(persistence_service=mock_persistence)

    assert service.get_user_subscriptions(1) == [{"id": 1}]
    mock_persistence.__enter__.return_value.get_subscriptions_by_chat_id.assert_called_once_with(1)


def test_remove_subscription():
    mock_persistence = MagicMock()
    service = SubscriptionService(persistence_service=mock_persistence)

    service.remove_subscription(5)

    mock_persistence.__enter__.return_value.deactivate_subscription.assert_called_once_with(5)


def test_update_last_notified():
    mock_persistence = MagicMock()
    service = SubscriptionService(persistence_service=mock_persistence)

    service.update_last_notified(5, "2024-01-16")

    mock_persistence.__enter__.return_value.update_subscription_last_notified.assert_called_once_with(
        5, "2024-01-16"
    )
