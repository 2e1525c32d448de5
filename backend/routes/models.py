"""Pydantic request models for API endpoints. JSON keys are camelCase."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from lf_sheet.models import CharacterPortrait, GoalValue, TraitNumber


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UpdateCharacter(_Body):
    name: str | None = None
    style_id: str | None = None
    style_custom_label: str | None = None
    role_id: str | None = None
    role_custom_label: str | None = None
    number: TraitNumber | None = None
    goal: GoalValue | None = None
    gear_notes: str | None = None
    notes: str | None = None
    portrait: CharacterPortrait | None = None


class ImportCharacter(_Body):
    text: str


class CreateOption(_Body):
    label: str
    color: str | None = None
    description: str | None = None


class ShowDefaultsBody(_Body):
    show_defaults: bool
