"""
This module defines the callback context handed to the bot's handlers, which
gives them access to the collection schedule facade.
"""
from typing import Optional

from telegram.ext import CallbackContext, ExtBot

from collection_schedule.facade import CollectionScheduleFacade


class CustomContext(CallbackContext[ExtBot, dict, dict, dict]):
    """
    Callback context carrying the CollectionScheduleFacade, so the resident
    handlers (subscribe, /next, /unsubscribe) reach schedules and
    subscriptions as `context.facade`.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._facade: Optional[CollectionScheduleFacade] = None

    @property
    def facade(self) -> Optional[CollectionScheduleFacade]:
        """The schedule facade, or None before the bot has been wired."""
        return self._facade

    @facade.setter
    def facade(self, value: CollectionScheduleFacade):
        self._facade = value
