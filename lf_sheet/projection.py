"""Index projection — the summary record shown in the saved-characters list.

Label resolution for style and role:

  id is the custom sentinel   → trimmed custom label, else "Custom Style"/"Custom Role"
  id found in the library     → that option's label
  id not found                → the stored custom label if one is set, else "Unknown"
"""

from __future__ import annotations

from lf_sheet.models import (
    CUSTOM_ROLE_ID,
    CUSTOM_STYLE_ID,
    Character,
    CharacterIndexRecord,
    Library,
    Option,
)

UNTITLED_NAME = "Untitled Character"
UNKNOWN_LABEL = "Unknown"
CUSTOM_STYLE_LABEL = "Custom Style"
CUSTOM_ROLE_LABEL = "Custom Role"


def find_option_label(options: list[Option], option_id: str) -> str:
    for option in options:
        if option.id == option_id:
            return option.label
    return UNKNOWN_LABEL


def _resolve_label(
    option_id: str,
    custom_label: str | None,
    options: list[Option],
    sentinel: str,
    sentinel_fallback: str,
) -> str:
    if option_id == sentinel:
        return (custom_label or "").strip() or sentinel_fallback
    label = find_option_label(options, option_id)
    if label == UNKNOWN_LABEL and custom_label:
        return custom_label
    return label


def resolve_style_label(character: Character, library: Library) -> str:
    return _resolve_label(
        character.style_id,
        character.style_custom_label,
        library.styles,
        CUSTOM_STYLE_ID,
        CUSTOM_STYLE_LABEL,
    )


def resolve_role_label(character: Character, library: Library) -> str:
    return _resolve_label(
        character.role_id,
        character.role_custom_label,
        library.roles,
        CUSTOM_ROLE_ID,
        CUSTOM_ROLE_LABEL,
    )


def project(character: Character, library: Library) -> CharacterIndexRecord:
    return CharacterIndexRecord(
        id=character.id,
        name=character.name or UNTITLED_NAME,
        updated_at=character.updated_at,
        style_label=resolve_style_label(character, library),
        role_label=resolve_role_label(character, library),
        portrait_thumb=character.portrait.data_url if character.portrait else None,
    )
