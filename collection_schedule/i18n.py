"""
Bilingual text helpers.

Resident-facing fields are `{"en": ..., "fr": ...}` pairs. `localize` is the one
place that decides which side of a pair to show.
"""
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import DEFAULT_LOCALE, SUPPORTED_LOCALES
from .dates import day_of_week

BilingualText = Mapping[str, Any]

FALLBACK_CHAIN = ("en", "fr")

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "today": "Today",
        "tomorrow": "Tomorrow",
        "next": "Next",
        "every_week": "Every week",
        "every_two_weeks": "Every two weeks",
        "monthly": "Monthly",
        "all_zones": "All zones",
        "no_schedule": "No collection schedule for this zone.",
        "collection_tomorrow": "{type} tomorrow",
        "put_out_bin": "Put out your {bin} tonight.",
        "special_collection_tomorrow": "Special: {name} tomorrow",
        "special_collection_body_location": "Don't miss the {name} event at {location}.",
        "special_collection_body": "Don't miss the {name} event tomorrow.",
    },
    "fr": {
        "today": "Aujourd'hui",
        "tomorrow": "Demain",
        "next": "Prochaine",
        "every_week": "Chaque semaine",
        "every_two_weeks": "Aux deux semaines",
        "monthly": "Mensuel",
        "all_zones": "Toutes les zones",
        "no_schedule": "Aucun horaire de collecte pour cette zone.",
        "collection_tomorrow": "{type} demain",
        "put_out_bin": "Sortez votre {bin} ce soir.",
        "special_collection_tomorrow": "Spécial: {name} demain",
        "special_collection_body_location": "Ne manquez pas l'événement {name} à {location}.",
        "special_collection_body": "Ne manquez pas l'événement {name} demain.",
    },
}

DAY_NAMES = {
    "en": ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
    "fr": ["Dimanche", "Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi"],
}

SHORT_MONTH_NAMES = {
    "en": ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
    "fr": [
        "janv.", "févr.", "mars", "avr.", "mai", "juin",
        "juill.", "août", "sept.", "oct.", "nov.", "déc.",
    ],
}


def normalize_locale(locale: Optional[str]) -> str:
    """Maps any locale tag (`fr-CA`, `EN`, None) onto a supported locale."""
    if locale:
        language = locale.split("-")[0].split("_")[0].lower()
        if language in SUPPORTED_LOCALES:
            return language
    return DEFAULT_LOCALE


def localize(
    text: Union[BilingualText, str, None], locale: Optional[str], fallback: Any = ""
) -> Any:
    """
    Picks the value of a bilingual field.

    Tries the requested locale, then English, then French, then `fallback`.
    Plain strings are returned as they are.
    """
    if not text:
        return fallback
    if isinstance(text, str):
        return text
    for key in (normalize_locale(locale),) + FALLBACK_CHAIN:
        value = text.get(key)
        if value:
            return value
    return fallback


def localize_list(items: Union[BilingualText, List[str], str, None], locale: Optional[str]) -> List[str]:
    """Like `localize` for bilingual item lists (accepted / not accepted)."""
    if not items:
        return []
    if isinstance(items, list):
        return items
    value = localize(items, locale, [])
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value:
        return [value]
    return []


def translate(key: str, locale: Optional[str], **params: str) -> str:
    """Looks up a UI string, falling back to English and then to the key itself."""
    text = TRANSLATIONS[normalize_locale(locale)].get(key) or TRANSLATIONS["en"].get(key, key)
    for name, value in params.items():
        text = text.replace(f"{{{name}}}", value)
    return text


def weekday_name(day_index: int, locale: Optional[str]) -> str:
    """Full weekday name for a Sunday=0 index."""
    return DAY_NAMES[normalize_locale(locale)][day_index % 7]


def format_weekday(day: date, locale: Optional[str]) -> str:
    return weekday_name(day_of_week(day), locale)


def format_short_date(day: date, locale: Optional[str]) -> str:
    """`Jan 17` in English, `17 janv.` in French."""
    locale = normalize_locale(locale)
    month = SHORT_MONTH_NAMES[locale][day.month - 1]
    if locale == "fr":
        return f"{day.day} {month}"
    return f"{month} {day.day}"
