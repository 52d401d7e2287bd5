"""
Language table lookups.

Pure helpers over constants.LANGUAGE_CHANGE_WORDS and
constants.CHECKED_LOCALE_GROUPS. No state, no side effects.
"""

from __future__ import annotations

from constants import CHECKED_LOCALE_GROUPS, LANGUAGE_CHANGE_WORDS, LanguageEntry


def check_locale(comparing: str | None, compared: str | None) -> bool:
    """True iff both codes belong to the same recognized locale group."""
    if not comparing or not compared:
        return False
    return any(
        comparing in group and compared in group
        for group in CHECKED_LOCALE_GROUPS
    )


def entry_for_confirmation(text: str | None) -> LanguageEntry | None:
    """Language whose peer confirmation greeting is exactly text."""
    if text is None:
        return None
    for entry in LANGUAGE_CHANGE_WORDS:
        if entry.message == text:
            return entry
    return None


def entry_for_locale(code: str | None) -> LanguageEntry | None:
    """First language whose locale is in the same group as code."""
    for entry in LANGUAGE_CHANGE_WORDS:
        if check_locale(entry.language, code):
            return entry
    return None
