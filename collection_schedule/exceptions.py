"""
This module defines custom exceptions for the collection schedule core.
"""
from typing import List, Optional


class DownloadError(Exception):
    """Custom exception for errors while fetching a schedule document."""

    pass


class ParsingError(Exception):
    """Custom exception for errors while reading a schedule document."""

    pass


class ScheduleValidationError(ValueError):
    """
    Raised at the admin-editing boundary when a schedule does not satisfy
    its invariants. `problems` lists every violation found.
    """

    def __init__(self, problems: List[str], message: Optional[str] = None):
        self.problems = list(problems)
        super().__init__(message or "; ".join(self.problems))


class ScheduleNotFoundError(KeyError):
    """Raised when a municipality, zone, collection type or special collection does not exist."""

    def __str__(self):
        return self.args[0] if self.args else "not found"
