"""
This module defines the central facade for the collection schedule application.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from .config import DEFAULT_REMINDER_HOUR, UPCOMING_COLLECTIONS_LIMIT
from .exceptions import DownloadError, ParsingError
from .i18n import normalize_locale
from .ical_export import build_zone_calendar
from .models import ScheduleData, UpcomingCollection, Zone
from .overview import build_schedule_cards
from .services.notification_service import NotificationService
from .services.persistence_service import PersistenceService
from .services.schedule_editor_service import ScheduleEditorService
from .services.schedule_service import ScheduleService
from .services.subscription_service import SubscriptionService
from .services.sync_service import SyncService
from .services.zone_service import ZoneService
from .special_collections import filter_special_collections
from .upcoming import combined_upcoming_collections

logger = logging.getLogger(__name__)


class CollectionScheduleFacade:
    """
    The central entry point for the collection schedule application.
    It orchestrates the various services to perform high-level operations.

    Methods that depend on the date take an optional `today`; it is read from
    the clock once per call and passed down unchanged.
    """

    def __init__(
        self,
        schedule_service: ScheduleService,
        persistence_service: PersistenceService,
        subscription_service: SubscriptionService,
        notification_service: NotificationService,
        sync_service: SyncService,
        editor_service: ScheduleEditorService,
        zone_service: ZoneService,
    ):
        self.schedule_service = schedule_service
        self.persistence_service = persistence_service
        self.subscription_service = subscription_service
        self.notification_service = notification_service
        self.sync_service = sync_service
        self.editor_service = editor_service
        self.zone_service = zone_service

    # --- Schedule documents ---

    def get_schedule(self, municipality_id: str, refresh: bool = False) -> Optional[ScheduleData]:
        """
        Returns the municipality's schedule, from the local cache when present.

        A missing or refreshed document is downloaded and cached. When the
        download fails the cached copy (if any) is returned instead.
        """
        cached = None
        try:
            with self.persistence_service as p:
                cached = p.get_schedule(municipality_id)
        except Exception:
            logger.exception(f"Failed to read cached schedule for {municipality_id}.")

        if cached is not None and not refresh:
            return cached

        try:
            schedule = self.schedule_service.download_schedule(municipality_id)
        except (DownloadError, ParsingError) as e:
            logger.warning(f"Could not download schedule for {municipality_id}: {e}")
            return cached

        with self.persistence_service as p:
            p.upsert_schedule(municipality_id, schedule)
        return schedule

    def find_zones(self, municipality_id: str, query: str) -> List[Zone]:
        """Zones of the municipality matching what a resident typed."""
        schedule = self.get_schedule(municipality_id)
        if schedule is None:
            return []
        return self.zone_service.find_zone_matches(query, schedule.zones)

    # --- Resident views ---

    def get_upcoming_collections(
        self,
        municipality_id: str,
        zone_id: str,
        today: Optional[date] = None,
        limit: int = UPCOMING_COLLECTIONS_LIMIT,
    ) -> List[UpcomingCollection]:
        schedule = self.get_schedule(municipality_id)
        if schedule is None:
            return []
        return combined_upcoming_collections(schedule, zone_id, today or date.today(), limit)

    def get_schedule_cards(
        self, municipality_id: str, zone_id: str, locale: str, today: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        schedule = self.get_schedule(municipality_id)
        if schedule is None:
            return []
        return build_schedule_cards(schedule, zone_id, locale, today or date.today())

    def get_special_collections(
        self, municipality_id: str, mode: str, today: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """
        Raises:
            ValueError: If `mode` is not upcoming, past or all.
        """
        schedule = self.get_schedule(municipality_id)
        if schedule is None:
            return []
        items = filter_special_collections(schedule.special_collections, mode, today or date.today())
        return [item.to_dict() for item in items]

    def export_zone_calendar(
        self, municipality_id: str, zone_id: str, locale: str, today: Optional[date] = None
    ) -> Optional[bytes]:
        schedule = self.get_schedule(municipality_id)
        if schedule is None or schedule.find_zone(zone_id) is None:
            return None
        calendar = build_zone_calendar(schedule, municipality_id, zone_id, locale, today or date.today())
        return calendar.to_ical()

    # --- Subscriptions ---

    def subscribe_resident(
        self,
        chat_id: int,
        municipality_id: str,
        zone_id: str,
        language: str,
        reminder_hour: int = DEFAULT_REMINDER_HOUR,
    ) -> bool:
        """
        Subscribes a resident to the reminders of one zone.

        Returns:
            True if the subscription was stored, False on an unexpected error.

        Raises:
            ValueError: If the municipality has no schedule or no such zone.
        """
        try:
            logger.info(
                f"Starting subscription for chat_id {chat_id}, municipality {municipality_id}, zone {zone_id}."
            )
            schedule = self.get_schedule(municipality_id, refresh=True)
            if schedule is None:
                raise ValueError(f"No schedule found for municipality '{municipality_id}'.")
            if schedule.find_zone(zone_id) is None:
                raise ValueError(f"Unknown zone '{zone_id}' for municipality '{municipality_id}'.")

            self.subscription_service.add_or_reactivate_subscription(
                chat_id=chat_id,
                municipality_id=municipality_id,
                zone_id=zone_id,
                language=normalize_locale(language),
                reminder_hour=reminder_hour,
            )
            logger.info(f"Successfully subscribed chat_id {chat_id} to {municipality_id}/{zone_id}.")
            return True

        except ValueError as e:
            logger.warning(f"A specific error occurred during subscription for chat_id {chat_id}: {e}")
            raise
        except Exception as e:
            logger.exception(
                f"An unexpected error occurred during subscription for chat_id {chat_id} and municipality {municipality_id}: {e}"
            )
            return False

    def get_user_subscriptions(self, chat_id: int) -> List[dict]:
        """Retrieves a user's active subscriptions."""
        try:
            return self.subscription_service.get_user_subscriptions(chat_id)
        except Exception as e:
            logger.exception(f"Failed to get subscriptions for chat_id {chat_id}: {e}")
            return []

    def unsubscribe(self, subscription_id: int) -> bool:
        """Unsubscribes a user from a specific subscription."""
        try:
            self.subscription_service.remove_subscription(subscription_id)
            logger.info(f"Successfully unsubscribed subscription_id {subscription_id}.")
            return True
        except Exception as e:
            logger.exception(f"Failed to unsubscribe subscription_id {subscription_id}: {e}")
            return False

    def get_upcoming_for_user(self, chat_id: int, today: Optional[date] = None) -> List[dict]:
        """The combined upcoming list for each of a user's subscriptions."""
        subscriptions = self.get_user_subscriptions(chat_id)
        if not subscriptions:
            return []

        today = today or date.today()
        results = []
        for sub in subscriptions:
            schedule = self.get_schedule(sub["municipality_id"])
            if schedule is None:
                continue
            zone = schedule.find_zone(sub["zone_id"])
            results.append(
                {
                    "municipality_id": sub["municipality_id"],
                    "zone": zone,
                    "language": sub["language"],
                    "collections": combined_upcoming_collections(schedule, sub["zone_id"], today),
                }
            )
        return results

    # --- Dashboard ---

    def get_dashboard_data(self) -> dict:
        """Retrieves all necessary data for the dashboard."""
        try:
            with self.persistence_service as p:
                subscriptions = p.get_all_active_subscriptions()
                municipalities = p.get_all_municipality_ids()
                notification_stats = p.get_notification_stats()
                logs = p.get_all_logs()
                bot_start_time = p.get_system_info("bot_start_time")
            return {
                "subscriptions": subscriptions,
                "municipalities": municipalities,
                "notification_stats": notification_stats,
                "logs": logs,
                "bot_start_time": bot_start_time,
            }
        except Exception as e:
            logger.exception("Failed to retrieve dashboard data.")
            return {
                "subscriptions": [],
                "municipalities": [],
                "notification_stats": {},
                "logs": [],
                "bot_start_time": None,
                "error": str(e),
            }

    # --- Notification Cycle Methods ---

    def get_due_notifications(self) -> List[dict]:
        """Gets all notifications that are due to be sent."""
        try:
            return self.notification_service.get_due_notifications()
        except Exception:
            logger.exception("Failed to get due notifications.")
            return []

    def log_pending_notification(self, subscription_id: int) -> Optional[int]:
        """Logs that a notification is about to be sent."""
        try:
            return self.notification_service.log_pending_notification(subscription_id)
        except Exception:
            logger.exception(f"Failed to log pending notification for sub_id {subscription_id}.")
            return None

    def update_notification_log(
        self, log_id: int, status: str, error_message: Optional[str] = None
    ) -> None:
        """Updates the status of a sent notification."""
        try:
            self.notification_service.update_notification_log(log_id, status, error_message)
        except Exception:
            logger.exception(f"Failed to update notification log for log_id {log_id}.")

    def update_last_notified_date(self, subscription_id: int, collection_date: date) -> None:
        """Updates the last notified date for a subscription."""
        try:
            self.subscription_service.update_last_notified(
                subscription_id, collection_date.isoformat()
            )
        except Exception:
            logger.exception(f"Failed to update last notified date for sub_id {subscription_id}.")

    def record_system_info(self, key: str, value: str) -> None:
        with self.persistence_service as p:
            p.record_system_info(key, value)
