"""
This module defines the ZoneService for finding a resident's zone.
"""
import logging
from typing import Dict, List

from thefuzz import process

from ..config import ZONE_MATCH_SCORE_CUTOFF
from ..models import Zone

# Get a logger instance for this module
logger = logging.getLogger(__name__)


class ZoneService:
    """Matches what a resident typed against a municipality's zones."""

    def __init__(self, score_cutoff: int = ZONE_MATCH_SCORE_CUTOFF, limit: int = 5):
        self.score_cutoff = score_cutoff
        self.limit = limit

    def find_zone_matches(self, query: str, zones: List[Zone]) -> List[Zone]:
        """
        Finds zones for a query, first trying an exact id or name match in
        either language, then falling back to fuzzy matching on names.
        """
        normalized = query.lower().strip()
        if not normalized:
            return []

        choices: Dict[str, Zone] = {}
        for zone in zones:
            if zone.id.lower() == normalized:
                return [zone]
            for name in zone.name.values():
                if not name:
                    continue
                if name.lower().strip() == normalized:
                    logger.info(f"Exact zone match '{zone.id}' for '{query}'.")
                    return [zone]
                choices.setdefault(name, zone)

        matches = process.extractBests(
            query, list(choices.keys()), limit=self.limit, score_cutoff=self.score_cutoff
        )
        results: List[Zone] = []
        for name, score in matches:
            zone = choices[name]
            if zone not in results:
                results.append(zone)
        logger.info(f"Fuzzy zone lookup for '{query}' found {len(results)} match(es).")
        return results
