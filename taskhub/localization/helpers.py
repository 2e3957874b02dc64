"""Localization helper functions."""
from __future__ import annotations

from typing import Optional

from taskhub.localization.translations import TRANSLATIONS

DEFAULT_LOCALE = "en"


def resolve_locale(accept_language: Optional[str], default: str = DEFAULT_LOCALE) -> str:
    """Pick the best supported locale from an Accept-Language header value.

    Languages are ranked by their ``q`` weight (``ru;q=0.8``); the first one
    with a catalogue wins.
    """
    if not accept_language:
        return default

    ranked = []
    for position, chunk in enumerate(accept_language.split(",")):
        parts = chunk.strip().split(";")
        lang = parts[0].strip().lower()
        if not lang:
            continue
        weight = 1.0
        for param in parts[1:]:
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    weight = float(value)
                except ValueError:
                    weight = 0.0
        ranked.append((-weight, position, lang.split("-")[0]))

    for _, _, lang in sorted(ranked):
        if lang in TRANSLATIONS:
            return lang
    return default


def get_translation(key: str, locale: str = DEFAULT_LOCALE, **kwargs) -> str:
    """Get translated message for a key, with optional formatting."""
    translations = TRANSLATIONS.get(locale.lower(), TRANSLATIONS[DEFAULT_LOCALE])
    message = translations.get(key) or TRANSLATIONS[DEFAULT_LOCALE].get(key, key)

    if kwargs:
        try:
            message = message.format(**kwargs)
        except (KeyError, ValueError):
            pass

    return message
