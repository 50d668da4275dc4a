"""
This module provides a factory for creating and configuring the application's core components.
"""

from collection_schedule.config import CIVICKEY_DB_PATH
from collection_schedule.facade import CollectionScheduleFacade
from collection_schedule.services.notification_service import NotificationService
from collection_schedule.services.persistence_service import PersistenceService
from collection_schedule.services.schedule_editor_service import ScheduleEditorService
from collection_schedule.services.schedule_service import ScheduleService
from collection_schedule.services.subscription_service import SubscriptionService
from collection_schedule.services.sync_service import SyncService
from collection_schedule.services.zone_service import ZoneService

from .logging_config import setup_database_logging


def initialize_app(db_path: str = CIVICKEY_DB_PATH) -> None:
    """
    Creates the database schema, then routes logging into it.
    """
    with PersistenceService(db_path) as persistence_service:
        persistence_service.init_db()
    setup_database_logging(db_path)


def create_facade(db_path: str = CIVICKEY_DB_PATH) -> CollectionScheduleFacade:
    """
    Initializes and returns the CollectionScheduleFacade with all its dependencies.
    """
    persistence_service = PersistenceService(db_path)
    schedule_service = ScheduleService()
    subscription_service = SubscriptionService(persistence_service)
    notification_service = NotificationService(persistence_service)
    sync_service = SyncService(
        persistence_service=persistence_service, schedule_service=schedule_service
    )

    return CollectionScheduleFacade(
        schedule_service=schedule_service,
        persistence_service=persistence_service,
        subscription_service=subscription_service,
        notification_service=notification_service,
        sync_service=sync_service,
        editor_service=ScheduleEditorService(persistence_service),
        zone_service=ZoneService(),
    )
