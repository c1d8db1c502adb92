"""
Kindred — Preference tag normalisation and support-role spelling helpers.

Journey tags arrive from onboarding forms with arbitrary case and padding
("Anxiety ", "career change").  Every comparison in the matching pipeline
runs on the normalised form produced here.
"""

from __future__ import annotations

from typing import Any, Iterable

SUPPORT_SEEKER = "support-seeker"
SUPPORT_GIVER = "support-giver"

# UI copy shown on the onboarding screen -> stored value
_UI_TO_DATABASE: dict[str, str] = {
    "I need support": SUPPORT_SEEKER,
    "I want to provide support": SUPPORT_GIVER,
}
_DATABASE_TO_UI: dict[str, str] = {v: k for k, v in _UI_TO_DATABASE.items()}


def normalize_preferences(preferences: Iterable[Any] | None) -> list[str]:
    """Lowercase and trim each tag, dropping non-strings and blanks.

    Relative order and duplicates are preserved.  Never raises.
    """
    if preferences is None or isinstance(preferences, (str, bytes)):
        return []
    try:
        items = list(preferences)
    except TypeError:
        return []
    return [
        pref.strip().lower()
        for pref in items
        if isinstance(pref, str) and pref.strip() != ""
    ]


def map_support_type_to_database(ui_type: str) -> str:
    return _UI_TO_DATABASE.get(ui_type, ui_type)


def map_support_type_to_ui(db_type: str) -> str:
    return _DATABASE_TO_UI.get(db_type, db_type)


def complement_support_type(support_type: str | None) -> str | None:
    """Return the role a user of ``support_type`` should be matched with.

    Seekers are offered givers and vice versa; anything else has no
    complement.
    """
    if support_type is None:
        return None
    stored = map_support_type_to_database(support_type)
    if stored == SUPPORT_SEEKER:
        return SUPPORT_GIVER
    if stored == SUPPORT_GIVER:
        return SUPPORT_SEEKER
    return None
