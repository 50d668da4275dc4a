"""
This module defines the SyncService for keeping cached schedule documents fresh.
"""

import asyncio
import logging

from ..config import SCHEDULE_SYNC_INTERVAL_HOURS
from ..exceptions import DownloadError, ParsingError
from .persistence_service import PersistenceService
from .schedule_service import ScheduleService

logger = logging.getLogger(__name__)


class SyncService:
    """
    Re-downloads the schedule of every municipality residents follow, so
    reminders and bot answers use what the municipality last published.
    """

    def __init__(
        self,
        persistence_service: PersistenceService,
        schedule_service: ScheduleService,
        interval_hours: float = SCHEDULE_SYNC_INTERVAL_HOURS,
    ):
        self.persistence_service = persistence_service
        self.schedule_service = schedule_service
        self.interval_hours = interval_hours

    def update_all_schedules(self) -> int:
        """
        Refreshes the cached document of every subscribed municipality.

        Returns:
            The number of documents that changed.
        """
        logger.info("Starting schedule sync for all subscribed municipalities.")
        with self.persistence_service as p:
            municipality_ids = p.get_unique_subscribed_municipalities()

        if not municipality_ids:
            logger.info("No subscribed municipalities found. Skipping schedule sync.")
            return 0

        changed = 0
        for municipality_id in municipality_ids:
            logger.info(f"Processing schedule for municipality {municipality_id}.")
            try:
                schedule = self.schedule_service.download_schedule(municipality_id)
                with self.persistence_service as db:
                    if db.upsert_schedule(municipality_id, schedule):
                        changed += 1
                        logger.info(f"Schedule for {municipality_id} changed and was stored.")
                    else:
                        logger.info(f"Schedule for {municipality_id} is unchanged.")

            except (DownloadError, ParsingError) as e:
                logger.error(f"Failed to sync schedule for municipality {municipality_id}: {e}")
            except Exception as e:
                logger.exception(
                    f"An unexpected error occurred while syncing municipality {municipality_id}: {e}"
                )

        logger.info("Schedule sync completed.")
        return changed

    async def run_scheduler(self) -> None:
        """
        Runs the schedule sync loop indefinitely.
        """
        while True:
            try:
                logger.info("Running schedule sync...")
                self.update_all_schedules()
                logger.info("Schedule sync finished.")
            except Exception as e:
                logger.exception(f"An error occurred during the schedule sync: {e}")

            logger.info(f"Sleeping for {self.interval_hours} hours...")
            await asyncio.sleep(self.interval_hours * 3600)
