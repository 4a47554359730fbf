"""Message catalog for conflict details.

Weekday names are indexed Sunday=0 through Saturday=6, matching the
availability records.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

DAY_NAMES: dict[str, tuple[str, ...]] = {
    "en": ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
    "it": ("Domenica", "Lunedi", "Martedi", "Mercoledi", "Giovedi", "Venerdi", "Sabato"),
}

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "overlap": "Overlaps existing schedule entry ({start}-{end})",
        "outside_availability": "Outside the worker's availability ({start}-{end})",
        "no_availability": "No availability defined for {day}",
        "max_hours": "Weekly hour limit exceeded ({projected:.1f}/{cap}h)",
    },
    "it": {
        "overlap": "Sovrapposizione con programmazione esistente ({start}-{end})",
        "outside_availability": "Orario fuori dalla disponibilita del lavoratore ({start}-{end})",
        "no_availability": "Nessuna disponibilita definita per {day}",
        "max_hours": "Superate le ore settimanali massime ({projected:.1f}/{cap}h)",
    },
}


def resolve_locale(locale: str | None) -> str:
    key = (locale or DEFAULT_LOCALE).strip().lower()
    if key not in MESSAGES:
        logger.warning("Unknown locale %r, falling back to %r", locale, DEFAULT_LOCALE)
        return DEFAULT_LOCALE
    return key


def day_name(day_of_week: int, locale: str | None = None) -> str:
    return DAY_NAMES[resolve_locale(locale)][day_of_week]


def plain_number(value: float) -> str:
    """Whole numbers without a decimal point, anything else as repr."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def render(key: str, locale: str | None = None, **params) -> str:
    return MESSAGES[resolve_locale(locale)][key].format(**params)
