"""
This module defines the NotificationService for collection reminders.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from ..dates import parse_local_date
from ..i18n import localize, translate
from ..models import ScheduleData
from ..recurrence import next_occurrence, resolve_rule
from ..special_collections import special_collection_name, upcoming_for_zone
from .persistence_service import PersistenceService


class NotificationService:
    """Handles the business logic for creating and sending reminders.

    Residents are reminded the evening before a collection, once their
    reminder hour has passed.
    """

    def __init__(self, persistence_service: PersistenceService):
        self.persistence = persistence_service

    def get_due_notifications(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        Gathers all notifications that are due to be sent.

        Args:
            now: The moment to evaluate; defaults to the current local time.

        Returns:
            A list of dictionaries, where each dictionary represents a notification task.
        """
        now = now or datetime.now()
        tomorrow = now.date() + timedelta(days=1)

        with self.persistence as p:
            subscriptions = p.get_all_active_subscriptions()
            schedules = {
                municipality_id: p.get_schedule(municipality_id)
                for municipality_id in {sub["municipality_id"] for sub in subscriptions}
            }

        notification_tasks = []
        for sub in subscriptions:
            schedule = schedules.get(sub["municipality_id"])
            if schedule is None:
                continue
            if now.hour < sub["reminder_hour"]:
                continue
            if parse_local_date(sub["last_notified"]) == tomorrow:
                continue

            for message in self.build_reminders(schedule, sub["zone_id"], sub["language"], tomorrow):
                notification_tasks.append(
                    {
                        "subscription_id": sub["id"],
                        "chat_id": sub["chat_id"],
                        "message": message,
                        "collection_date": tomorrow,
                    }
                )
        return notification_tasks

    def build_reminders(
        self, schedule: ScheduleData, zone_id: str, language: str, collection_day: date
    ) -> List[str]:
        """Reminder texts for every collection in the zone on `collection_day`."""
        messages = []
        zone_schedule = schedule.zone_schedule(zone_id)
        for collection_type in schedule.collection_types:
            rule = zone_schedule.get(collection_type.id)
            if rule is None:
                continue
            if next_occurrence(resolve_rule(rule, zone_schedule), collection_day) != collection_day:
                continue
            type_name = localize(collection_type.name, language, collection_type.id)
            bin_name = localize(collection_type.bin_name, language, type_name)
            emoji = self._get_collection_emoji(collection_type.id)
            messages.append(
                f"{emoji} {translate('collection_tomorrow', language, type=type_name)}\n"
                f"{translate('put_out_bin', language, bin=bin_name.lower())}"
            )

        for item in upcoming_for_zone(schedule.special_collections, zone_id, collection_day):
            if item.collection_date != collection_day:
                break
            name = localize(special_collection_name(item, schedule), language, item.id)
            if item.location:
                body = translate(
                    "special_collection_body_location", language, name=name.lower(), location=item.location
                )
            else:
                body = translate("special_collection_body", language, name=name.lower())
            messages.append(f"📅 {translate('special_collection_tomorrow', language, name=name)}\n{body}")
        return messages

    def _get_collection_emoji(self, collection_type_id: str) -> str:
        """Returns an emoji for a given collection type."""
        if "recycl" in collection_type_id.lower():
            return "🔵"
        if "compost" in collection_type_id.lower() or "organic" in collection_type_id.lower():
            return "🟤"
        if "garbage" in collection_type_id.lower() or "trash" in collection_type_id.lower():
            return "⚫"
        return "🗑️"

    def log_pending_notification(self, subscription_id: int) -> int:
        """Logs a pending notification and returns the log ID."""
        with self.persistence as p:
            return p.create_notification_log(subscription_id, "pending")

    def update_notification_log(
        self, log_id: int, status: str, error_message: Optional[str] = None
    ) -> None:
        """Updates the status of a notification log."""
        with self.persistence as p:
            p.update_notification_log_status(log_id, status, error_message)
