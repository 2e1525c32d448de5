"""Core domain models.

Every record the editor persists is one of these types. Pydantic validates
at every data boundary: reading from storage, importing JSON, and applying
an update. Stored JSON uses camelCase keys (``createdAt``, ``styleId``);
Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1

CUSTOM_STYLE_ID = "custom-style"
CUSTOM_ROLE_ID = "custom-role"

OptionSource = Literal["default", "custom"]
OptionCategory = Literal["styles", "roles", "goals"]
TraitNumber = Literal[2, 3, 4, 5]
GoalType = Literal["preset", "custom"]
PortraitMime = Literal["image/jpeg", "image/png"]
SaveState = Literal["idle", "saving", "saved", "error"]

OPTION_CATEGORIES: tuple[OptionCategory, ...] = ("styles", "roles", "goals")


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with the stored key names, leaving out unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Option(_Record):
    """A selectable choice within one category of the library."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    source: OptionSource
    color: str | None = None  # styles and roles only
    description: str | None = None


class Library(_Record):
    """All selectable options. A category missing from stored data is empty."""

    styles: list[Option] = []
    roles: list[Option] = []
    goals: list[Option] = []

    def options(self, category: OptionCategory) -> list[Option]:
        return getattr(self, category)


class GoalValue(_Record):
    """Either a reference to a goal option (preset) or free text (custom)."""

    type: GoalType
    value: str


class CharacterPortrait(_Record):
    mime: PortraitMime
    data_url: str
    width: int
    height: int


class Character(_Record):
    """A player character as edited and saved by the user."""

    id: str
    version: Literal[1] = SCHEMA_VERSION
    created_at: str
    updated_at: str
    name: str = ""
    style_id: str
    style_custom_label: str | None = None  # used when style_id == CUSTOM_STYLE_ID
    role_id: str
    role_custom_label: str | None = None  # used when role_id == CUSTOM_ROLE_ID
    number: TraitNumber = 3
    goal: GoalValue
    gear_notes: str | None = None
    notes: str | None = None
    portrait: CharacterPortrait | None = None


class CharacterIndexRecord(_Record):
    """Denormalized summary of a saved character for list display."""

    id: str
    name: str
    updated_at: str
    style_label: str
    role_label: str
    portrait_thumb: str | None = None


class ImportResult(_Record):
    success: bool
    message: str | None = None
