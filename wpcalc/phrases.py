"""Phrase tables for the natural-language renderers.

English is the default locale. Russian is the second built-in locale.
"""

from __future__ import annotations

from typing import Dict

from wpcalc.errors import invalid_argument


DEFAULT_LOCALE = "en"

_PHRASES: Dict[str, Dict[str, str]] = {
    "en": {
        ">": "greater than",
        "<": "less than",
        ">=": "greater than or equal to",
        "<=": "less than or equal to",
        "==": "equal to",
        "!=": "not equal to",
        "and": "AND",
        "or": "OR",
        "not": "NOT",
        "true": "true",
        "false": "false",
        "assign": "assign {value} to variable {name}",
        "then": "then",
        "if": "if {cond}, then {then}, otherwise {other}",
        "unknown_post": "unknown postcondition",
    },
    "ru": {
        ">": "больше",
        "<": "меньше",
        ">=": "больше или равно",
        "<=": "меньше или равно",
        "==": "равно",
        "!=": "не равно",
        "and": "И",
        "or": "ИЛИ",
        "not": "НЕ",
        "true": "истина",
        "false": "ложь",
        "assign": "присвоить переменной {name} значение {value}",
        "then": "затем",
        "if": "если {cond}, то {then}, иначе {other}",
        "unknown_post": "неизвестное постусловие",
    },
}


def locales() -> list[str]:
    return sorted(_PHRASES)


def phrase(key: str, locale: str = DEFAULT_LOCALE) -> str:
    """Look up a phrase, raising InvalidArgument for an unknown locale."""
    table = _PHRASES.get(locale)
    if table is None:
        raise invalid_argument(f"Unknown locale '{locale}'. Available: {locales()}",
                               locale=locale)
    return table.get(key, key)
