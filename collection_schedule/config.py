"""
This module contains configuration settings for the application.
"""
import os
import logging

# Telegram Bot Token
TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN")

# Cached schedule documents are refreshed at this interval (hours)
SCHEDULE_SYNC_INTERVAL_HOURS = int(os.environ.get("SCHEDULE_SYNC_INTERVAL_HOURS", 6))

# Logging level
LOG_LEVEL = logging.INFO

# Database path
CIVICKEY_DB_PATH = os.environ.get("CIVICKEY_DB_PATH", "civickey.db")

# Schedule document endpoint, formatted with the municipality id
SCHEDULE_API_URL = os.environ.get(
    "SCHEDULE_API_URL", "http://localhost:8080/api/{municipality_id}/schedule"
)

# Telegram bot rate limiting
TELEGRAM_RATE_LIMIT_OVERALL = int(os.environ.get("TELEGRAM_RATE_LIMIT_OVERALL", 30))
TELEGRAM_RATE_LIMIT_GROUP = float(os.environ.get("TELEGRAM_RATE_LIMIT_GROUP", 20 / 60))

# Schedule service retry settings
SCHEDULE_SERVICE_MAX_RETRIES = int(os.environ.get("SCHEDULE_SERVICE_MAX_RETRIES", 3))
SCHEDULE_SERVICE_RETRY_DELAY = int(os.environ.get("SCHEDULE_SERVICE_RETRY_DELAY", 10))
SCHEDULE_SERVICE_TIMEOUT = int(os.environ.get("SCHEDULE_SERVICE_TIMEOUT", 10))

# Residents are reminded the evening before a collection, from this hour on
DEFAULT_REMINDER_HOUR = int(os.environ.get("DEFAULT_REMINDER_HOUR", 19))

# Number of items in the combined "upcoming collections" list
UPCOMING_COLLECTIONS_LIMIT = int(os.environ.get("UPCOMING_COLLECTIONS_LIMIT", 3))

# Calendar feed horizon (weeks)
CALENDAR_EXPORT_WEEKS = int(os.environ.get("CALENDAR_EXPORT_WEEKS", 8))

# Minimum thefuzz score for a zone name to count as a match
ZONE_MATCH_SCORE_CUTOFF = int(os.environ.get("ZONE_MATCH_SCORE_CUTOFF", 80))

# Locales
SUPPORTED_LOCALES = ("en", "fr")
DEFAULT_LOCALE = os.environ.get("DEFAULT_LOCALE", "en")
