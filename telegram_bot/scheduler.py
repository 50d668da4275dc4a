"""
This module sends due collection reminders through the bot.
"""

import asyncio
import logging

from telegram import Bot
from telegram.ext import Application

from collection_schedule.facade import CollectionScheduleFacade

logger = logging.getLogger(__name__)

CHUNK_SIZE = 30
CHECK_INTERVAL_SECONDS = 3600


async def send_notification(bot: Bot, chat_id: int, message: str) -> None:
    """Sends a single notification message to a user."""
    await bot.send_message(chat_id=chat_id, text=message)


async def check_and_send_notifications(facade: CollectionScheduleFacade, bot: Bot) -> None:
    """
    Fetches due reminders from the facade and sends them in chunks.

    A subscription is only marked as notified once its message was delivered,
    so a failed send is retried on the next check.
    """
    logger.info("Checking for due notifications...")
    notification_tasks = facade.get_due_notifications()

    if not notification_tasks:
        logger.info("No notifications are due.")
        return

    logger.info(f"Found {len(notification_tasks)} notifications to send.")

    for i in range(0, len(notification_tasks), CHUNK_SIZE):
        chunk = notification_tasks[i : i + CHUNK_SIZE]

        pending = []
        for task in chunk:
            log_id = facade.log_pending_notification(task["subscription_id"])
            if log_id:
                pending.append((log_id, task))

        results = await asyncio.gather(
            *(send_notification(bot, task["chat_id"], task["message"]) for _, task in pending),
            return_exceptions=True,
        )

        for (log_id, task), result in zip(pending, results):
            if not isinstance(result, Exception):
                facade.update_last_notified_date(
                    subscription_id=task["subscription_id"],
                    collection_date=task["collection_date"],
                )
                facade.update_notification_log(log_id, "success")
                logger.info(f"Successfully sent notification to chat_id {task['chat_id']}.")
            else:
                error_message = str(result)
                facade.update_notification_log(log_id, "failure", error_message)
                logger.error(
                    f"Failed to send notification to chat_id {task['chat_id']}: {error_message}"
                )

        # Stay under Telegram's broadcast limit between chunks
        if i + CHUNK_SIZE < len(notification_tasks):
            await asyncio.sleep(1)


async def scheduler(facade: CollectionScheduleFacade, application: Application) -> None:
    """
    The main scheduler loop that periodically checks for and sends notifications.
    """
    bot = application.bot
    logger.info("Notification scheduler started.")
    while True:
        try:
            await check_and_send_notifications(facade, bot)
        except Exception as e:
            logger.exception(f"An error occurred in the notification scheduler loop: {e}")
        await asyncio.sleep(CHECK_INTERVAL_SECONDS)
