"""
This module defines the ScheduleService for downloading schedule documents.
"""
import logging
import time
from typing import Any, Dict

import requests

from ..config import (
    SCHEDULE_API_URL,
    SCHEDULE_SERVICE_MAX_RETRIES,
    SCHEDULE_SERVICE_RETRY_DELAY,
    SCHEDULE_SERVICE_TIMEOUT,
)
from ..exceptions import DownloadError, ParsingError
from ..models import ScheduleData

# Get a logger instance for this module
logger = logging.getLogger(__name__)


class ScheduleService:
    """Handles downloading and parsing of municipality schedule documents."""

    def __init__(
        self,
        api_url: str = SCHEDULE_API_URL,
        max_retries: int = SCHEDULE_SERVICE_MAX_RETRIES,
        retry_delay: float = SCHEDULE_SERVICE_RETRY_DELAY,
        timeout: int = SCHEDULE_SERVICE_TIMEOUT,
    ):
        self.api_url = api_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    def download_schedule(self, municipality_id: str) -> ScheduleData:
        """
        Downloads and parses the schedule document of a municipality.

        Args:
            municipality_id: The municipality's document id (e.g. "saint-lazare").

        Returns:
            The parsed ScheduleData.

        Raises:
            DownloadError: If the document cannot be downloaded after retries.
            ParsingError: If the downloaded content is not a schedule document.
        """
        for attempt in range(self.max_retries):
            try:
                payload = self._download_json(municipality_id)
                return self._parse_schedule(payload, municipality_id)
            except (DownloadError, ParsingError) as e:
                logger.warning(
                    f"Attempt {attempt + 1} failed for municipality {municipality_id}. Error: {e}"
                )
                if attempt + 1 == self.max_retries:
                    logger.error(
                        f"All {self.max_retries} download attempts failed for municipality {municipality_id}."
                    )
                    raise
                time.sleep(self.retry_delay)
        raise DownloadError(f"No download attempted for municipality {municipality_id}.")

    def _download_json(self, municipality_id: str) -> Any:
        """Downloads the schedule document and decodes its JSON body."""
        url = self.api_url.format(municipality_id=municipality_id)
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            logger.info(f"Successfully downloaded schedule for municipality {municipality_id}")
        except requests.exceptions.RequestException as e:
            raise DownloadError(
                f"Error downloading schedule for municipality {municipality_id}: {e}"
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise ParsingError(
                f"Schedule for municipality {municipality_id} is not valid JSON: {e}"
            ) from e

    def _parse_schedule(self, payload: Dict[str, Any], municipality_id: str) -> ScheduleData:
        # Some document stores wrap the document in a "schedule" key.
        if isinstance(payload, dict) and isinstance(payload.get("schedule"), dict):
            payload = payload["schedule"]
        try:
            return ScheduleData.from_dict(payload)
        except ParsingError:
            raise
        except (TypeError, AttributeError, ValueError) as e:
            raise ParsingError(
                f"Malformed schedule document for municipality {municipality_id}: {e}"
            ) from e
