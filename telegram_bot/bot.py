"""
This module contains the resident-facing Telegram bot built on the CollectionScheduleFacade.
"""

import asyncio
import html
import logging
from datetime import date, datetime

from telegram import ReplyKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.ext import (AIORateLimiter, Application, CommandHandler,
                          ContextTypes, ConversationHandler, MessageHandler,
                          filters)

from collection_schedule.config import (TELEGRAM_BOT_TOKEN,
                                        TELEGRAM_RATE_LIMIT_GROUP,
                                        TELEGRAM_RATE_LIMIT_OVERALL)
from collection_schedule.facade import CollectionScheduleFacade
from collection_schedule.i18n import localize, translate
from collection_schedule.labels import SHORT_DATE, display_label

from .context import CustomContext
from .scheduler import scheduler

logger = logging.getLogger(__name__)

# Conversation states: MUNICIPALITY -> ZONE -> LANGUAGE
MUNICIPALITY, ZONE, LANGUAGE, SELECT_SUB = range(4)

LANGUAGE_CHOICES = {"English": "en", "Français": "fr"}

Context = CustomContext


def _zone_label(zone) -> str:
    return localize(zone.name, "en", zone.id)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Sends a welcome message."""
    await update.message.reply_text(
        "Hi! I remind you the evening before each garbage, recycling and compost collection.\n"
        "Bonjour! Je vous rappelle chaque collecte la veille au soir.\n\n"
        "Use /subscribe to get started."
    )


async def subscribe(update: Update, context: Context) -> int:
    """Starts the subscription conversation."""
    await update.message.reply_text(
        "Please send your municipality id (e.g. saint-lazare).\n"
        "Veuillez entrer l'identifiant de votre municipalité."
    )
    return MUNICIPALITY


async def handle_municipality_input(update: Update, context: Context) -> int:
    """Checks that the municipality publishes a schedule, then asks for the zone."""
    try:
        municipality_id = update.message.text.strip().lower()
        if not municipality_id:
            await update.message.reply_text("Please send a municipality id.")
            return MUNICIPALITY

        schedule = context.facade.get_schedule(municipality_id)
        if schedule is None or not schedule.zones:
            await update.message.reply_text(
                f"No collection schedule was found for '{municipality_id}'. Please check the id and try again."
            )
            return MUNICIPALITY

        context.user_data["municipality_id"] = municipality_id
        reply_keyboard = [[_zone_label(zone)] for zone in schedule.zones]
        await update.message.reply_text(
            "Which zone do you live in? / Dans quelle zone habitez-vous?",
            reply_markup=ReplyKeyboardMarkup(reply_keyboard, one_time_keyboard=True),
        )
        return ZONE

    except Exception as e:
        logger.error(f"Error in handle_municipality_input: {e}")
        await update.message.reply_text("An unexpected error occurred. Please try again later.")
        return ConversationHandler.END


async def handle_zone_input(update: Update, context: Context) -> int:
    """Resolves the zone the resident typed or picked."""
    municipality_id = context.user_data["municipality_id"]
    matches = context.facade.find_zones(municipality_id, update.message.text)

    if not matches:
        await update.message.reply_text("That zone was not found. Please pick one of the options.")
        return ZONE

    if len(matches) > 1:
        reply_keyboard = [[_zone_label(zone)] for zone in matches]
        await update.message.reply_text(
            "Several zones match. Please pick yours:",
            reply_markup=ReplyKeyboardMarkup(reply_keyboard, one_time_keyboard=True),
        )
        return ZONE

    context.user_data["zone_id"] = matches[0].id
    context.user_data["zone_name"] = _zone_label(matches[0])
    await update.message.reply_text(
        "Which language do you prefer? / Quelle langue préférez-vous?",
        reply_markup=ReplyKeyboardMarkup([list(LANGUAGE_CHOICES)], one_time_keyboard=True),
    )
    return LANGUAGE


async def set_language(update: Update, context: Context) -> int:
    """Stores the subscription and ends the conversation."""
    language = LANGUAGE_CHOICES.get(update.message.text.strip())
    if language is None:
        await update.message.reply_text(
            "Please pick one of the options.",
            reply_markup=ReplyKeyboardMarkup([list(LANGUAGE_CHOICES)], one_time_keyboard=True),
        )
        return LANGUAGE

    chat_id = update.message.chat_id
    municipality_id = context.user_data["municipality_id"]
    zone_id = context.user_data["zone_id"]

    try:
        success = context.facade.subscribe_resident(
            chat_id=chat_id,
            municipality_id=municipality_id,
            zone_id=zone_id,
            language=language,
        )
        if success:
            await update.message.reply_text(
                f"Subscribed to {municipality_id} ({context.user_data['zone_name']}).",
                reply_markup=ReplyKeyboardRemove(),
            )
        else:
            await update.message.reply_text(
                "An internal error prevented the subscription. Please try again later.",
                reply_markup=ReplyKeyboardRemove(),
            )
    except ValueError as e:
        await update.message.reply_text(f"Error: {e}", reply_markup=ReplyKeyboardRemove())
    except Exception as e:
        logger.error(f"Unexpected error in set_language: {e}")
        await update.message.reply_text(
            "An unexpected error occurred.", reply_markup=ReplyKeyboardRemove()
        )

    context.user_data.clear()
    return ConversationHandler.END


def _subscription_label(sub: dict) -> str:
    return f"{sub['municipality_id']} / {sub['zone_id']}"


async def my_subscriptions(update: Update, context: Context) -> None:
    """Displays the user's current subscriptions."""
    subscriptions = context.facade.get_user_subscriptions(update.message.chat_id)
    if not subscriptions:
        await update.message.reply_text("You have no active reminders.")
        return

    message = "Your reminders:\n\n"
    for sub in subscriptions:
        message += f"- {_subscription_label(sub)} ({sub['language']}, {sub['reminder_hour']}:00)\n"
    await update.message.reply_text(message)


async def unsubscribe(update: Update, context: Context) -> int:
    """Starts the unsubscribe conversation."""
    subscriptions = context.facade.get_user_subscriptions(update.message.chat_id)
    if not subscriptions:
        await update.message.reply_text("You have no active reminders to cancel.")
        return ConversationHandler.END

    context.user_data["subscriptions"] = {
        _subscription_label(sub): sub["id"] for sub in subscriptions
    }
    reply_keyboard = [[label] for label in context.user_data["subscriptions"]]
    await update.message.reply_text(
        "Pick the reminder to cancel:",
        reply_markup=ReplyKeyboardMarkup(reply_keyboard, one_time_keyboard=True),
    )
    return SELECT_SUB


async def select_sub_to_unsubscribe(update: Update, context: Context) -> int:
    """Handles the selection of a subscription to unsubscribe from."""
    sub_id = context.user_data.get("subscriptions", {}).get(update.message.text)
    if not sub_id:
        await update.message.reply_text("Invalid choice. Please pick one of the options.")
        return SELECT_SUB

    if context.facade.unsubscribe(sub_id):
        text = "Reminder cancelled."
    else:
        text = "An error occurred while cancelling the reminder."
    await update.message.reply_text(text, reply_markup=ReplyKeyboardRemove())

    context.user_data.clear()
    return ConversationHandler.END


async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Cancels and ends the conversation."""
    await update.message.reply_text("Cancelled.", reply_markup=ReplyKeyboardRemove())
    context.user_data.clear()
    return ConversationHandler.END


def format_upcoming(entry: dict, today: date) -> str:
    """Formats the upcoming collections of one subscription in its language, as Telegram HTML."""
    language = entry["language"]
    zone = entry["zone"]
    zone_name = html.escape(localize(zone.name, language, zone.id)) if zone else ""
    lines = [f"📍 <b>{html.escape(entry['municipality_id'])}</b> {zone_name}".rstrip()]
    if not entry["collections"]:
        lines.append(f"   {translate('no_schedule', language)}")
    for item in entry["collections"]:
        name = html.escape(localize(item.name, language, item.collection_type_id or ""))
        label = display_label(item.date, today, language, SHORT_DATE)
        marker = "📅" if item.kind == "special" else "🗑️"
        lines.append(f"   {marker} {name}: {label}")
    return "\n".join(lines)


async def next_collections(update: Update, context: Context) -> None:
    """Displays the next collections for each of the user's subscriptions."""
    today = date.today()
    entries = context.facade.get_upcoming_for_user(update.message.chat_id, today)

    if not entries:
        await update.message.reply_text(
            "You have no active subscriptions. Use /subscribe to add one."
        )
        return

    message = "\n\n".join(format_upcoming(entry, today) for entry in entries)
    await update.message.reply_text(message, parse_mode="HTML")


def setup_handlers(application: Application) -> None:
    """Registers the command and conversation handlers."""
    text_only = filters.TEXT & ~filters.COMMAND

    subscribe_conv = ConversationHandler(
        entry_points=[CommandHandler("subscribe", subscribe)],
        states={
            MUNICIPALITY: [MessageHandler(text_only, handle_municipality_input)],
            ZONE: [MessageHandler(text_only, handle_zone_input)],
            LANGUAGE: [MessageHandler(text_only, set_language)],
        },
        fallbacks=[CommandHandler("cancel", cancel)],
    )

    unsubscribe_conv = ConversationHandler(
        entry_points=[CommandHandler("unsubscribe", unsubscribe)],
        states={SELECT_SUB: [MessageHandler(text_only, select_sub_to_unsubscribe)]},
        fallbacks=[CommandHandler("cancel", cancel)],
    )

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("mysubscriptions", my_subscriptions))
    application.add_handler(CommandHandler("next", next_collections))
    application.add_handler(subscribe_conv)
    application.add_handler(unsubscribe_conv)


def record_bot_start_time(facade_instance: CollectionScheduleFacade) -> None:
    """Records the bot's start time in the system_info table."""
    try:
        facade_instance.record_system_info("bot_start_time", datetime.now().isoformat())
    except Exception as e:
        logger.error(f"Failed to record bot start time: {e}")


async def main(facade_instance: CollectionScheduleFacade):
    """Initializes and runs the bot, the reminder scheduler and the schedule sync."""
    if not TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN environment variable not set.")
        return

    record_bot_start_time(facade_instance)

    rate_limiter = AIORateLimiter(
        overall_max_rate=TELEGRAM_RATE_LIMIT_OVERALL,
        group_max_rate=TELEGRAM_RATE_LIMIT_GROUP,
    )

    application = (
        Application.builder()
        .token(TELEGRAM_BOT_TOKEN)
        .rate_limiter(rate_limiter)
        .context_types(ContextTypes(context=Context))
        .build()
    )

    # Every callback context created by this application shares the facade
    application.context_types.context.facade = facade_instance

    setup_handlers(application)

    await application.initialize()
    await application.start()
    await application.updater.start_polling()

    logger.info("Bot started and polling...")

    try:
        await asyncio.gather(
            scheduler(facade_instance, application),
            facade_instance.sync_service.run_scheduler(),
        )
    except asyncio.CancelledError:
        logger.info("Bot is stopping...")
    finally:
        if application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
            await application.shutdown()
