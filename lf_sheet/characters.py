"""Character session — the active character, the saved index, and autosave.

One CharacterManager per editing session. It owns:

  active      the single character being edited
  index       summary records of every saved character, most recent first
  save_state  idle → saving → saved | error; saved → idle after a delay;
              error stays until the next save attempt

update() re-stamps updatedAt and schedules a debounced save keyed by the
character id. Only the last state of a burst of edits is written. A save
writes the full record, then moves the character's projection to the front
of the index and writes the index.

Stale saves: when the active character is replaced by another identity
(create_new, load, duplicate, import, save_as_new, delete) while a save for
the old one is still pending, the stale_save_policy decides what happens:

  "proceed"   the pending save still runs with the old character's latest
              snapshot (default)
  "cancel"    pending saves for every other identity are dropped

Deleting a character cancels its own pending save once the record is gone;
a failed delete keeps the pending save.

Library changes: the manager subscribes to the library manager. When a new
library arrives, the style and role labels of every index entry are
recomputed from its stored record (the index is written only if a label
changed), and a preset goal of the active character whose option no longer
exists is rewritten to a custom goal carrying the stale id as text.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Literal

from pydantic import ValidationError

from lf_sheet.debounce import Debouncer, Scheduler, TimerHandle
from lf_sheet.library import DEFAULT_LIBRARY, LibraryManager
from lf_sheet.models import (
    SCHEMA_VERSION,
    Character,
    CharacterIndexRecord,
    GoalValue,
    ImportResult,
    Library,
    SaveState,
)
from lf_sheet.projection import project, resolve_role_label, resolve_style_label
from lf_sheet.storage import Storage, StorageWriteError

logger = logging.getLogger(__name__)

StaleSavePolicy = Literal["proceed", "cancel"]
STALE_SAVE_POLICIES: tuple[StaleSavePolicy, ...] = ("proceed", "cancel")

SAVE_DELAY = 0.5
SAVED_RESET_DELAY = 2.0
DEFAULT_NUMBER = 3
COPY_SUFFIX = " (Copy)"
IMPORT_ERROR_MESSAGE = "Invalid character JSON or schema version"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_goal(goal: GoalValue, library: Library) -> GoalValue:
    """Retag a preset goal as custom if its option is gone. Returns goal itself when valid."""
    if goal.type == "preset" and not any(g.id == goal.value for g in library.goals):
        return GoalValue(type="custom", value=goal.value)
    return goal


def new_character(library: Library, character_id: str, now: str) -> Character:
    """A blank character using the first style, role and goal of the library."""
    style = library.styles[0] if library.styles else DEFAULT_LIBRARY.styles[0]
    role = library.roles[0] if library.roles else DEFAULT_LIBRARY.roles[0]
    if library.goals:
        goal = GoalValue(type="preset", value=library.goals[0].id)
    else:
        goal = GoalValue(type="custom", value="")
    return Character(
        id=character_id,
        created_at=now,
        updated_at=now,
        name="",
        style_id=style.id,
        role_id=role.id,
        number=DEFAULT_NUMBER,
        goal=goal,
        gear_notes="",
        notes="",
    )


def parse_character_json(text: str, character_id: str, now: str) -> Character | None:
    """Parse an exported character under a new id and timestamps.

    None if not JSON, wrong version, or invalid. id, createdAt and updatedAt
    in the text are ignored, so they may also be missing.
    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.warning("Failed to parse character json: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("Character json is not an object")
        return None
    version = data.get("version")
    # bool is an int subclass; true must not pass as version 1
    if isinstance(version, bool) or version != SCHEMA_VERSION:
        logger.warning("Unsupported character schema version: %r", version)
        return None
    try:
        return Character.model_validate(
            {**data, "id": character_id, "version": SCHEMA_VERSION, "createdAt": now, "updatedAt": now}
        )
    except ValidationError as e:
        logger.warning("Character json does not match the schema: %s", e)
        return None


class CharacterManager:
    """The editing session.

    Args:
        storage:           Where records and the index are written.
        library_manager:   Source of the current library; the manager
                           subscribes to it for goal normalization.
        scheduler:         Runs debounced saves and the status reset.
        save_delay:        Quiet period before a save, in seconds.
        saved_reset_delay: How long "saved" is shown before "idle".
        stale_save_policy: "proceed" or "cancel", see the module docstring.
        clock:             Returns the current time (UTC datetime).
        id_factory:        Returns a new unique character id.
    """

    def __init__(
        self,
        storage: Storage,
        library_manager: LibraryManager,
        scheduler: Scheduler,
        *,
        save_delay: float = SAVE_DELAY,
        saved_reset_delay: float = SAVED_RESET_DELAY,
        stale_save_policy: StaleSavePolicy = "proceed",
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if stale_save_policy not in STALE_SAVE_POLICIES:
            raise ValueError(f"Unknown stale save policy: {stale_save_policy!r}")
        self._storage = storage
        self._library_manager = library_manager
        self._scheduler = scheduler
        self._debouncer = Debouncer(scheduler, save_delay)
        self._saved_reset_delay = saved_reset_delay
        self._stale_save_policy = stale_save_policy
        self._clock = clock
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._save_state: SaveState = "idle"
        self._reset_handle: TimerHandle | None = None
        self._index: list[CharacterIndexRecord] = storage.read_character_list() or []
        self._active = self._initial_active()
        self._unsubscribe = library_manager.subscribe(self.on_library_changed)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def active(self) -> Character:
        return self._active

    def get_active(self) -> Character:
        return self._active

    @property
    def index(self) -> list[CharacterIndexRecord]:
        return list(self._index)

    @property
    def save_state(self) -> SaveState:
        return self._save_state

    @property
    def stale_save_policy(self) -> StaleSavePolicy:
        return self._stale_save_policy

    def has_pending_save(self, character_id: str) -> bool:
        return self._debouncer.is_pending(character_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def _library(self) -> Library:
        return self._library_manager.library

    def _now(self) -> str:
        return self._clock().isoformat()

    def _fresh(self) -> Character:
        return new_character(self._library, self._new_id(), self._now())

    def _normalized(self, character: Character) -> Character:
        goal = normalize_goal(character.goal, self._library)
        if goal is character.goal:
            return character
        return character.model_copy(update={"goal": goal})

    def _initial_active(self) -> Character:
        """Most recently updated saved character that can be read, else a fresh one."""
        for record in sorted(self._index, key=lambda r: r.updated_at, reverse=True):
            stored = self._storage.read_character(record.id)
            if stored is not None:
                return self._normalized(stored)
        return self._fresh()

    def _is_saved(self, character_id: str) -> bool:
        return any(r.id == character_id for r in self._index)

    def _set_active(self, character: Character) -> None:
        if self._stale_save_policy == "cancel" and self._active.id != character.id:
            cancelled = self._debouncer.cancel_others(character.id)
            if cancelled:
                logger.debug("cancelled stale saves for %s", ", ".join(cancelled))
        self._active = character

    def _schedule_save(self, character: Character) -> None:
        self._debouncer.schedule(character.id, lambda: self._persist(character))

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _reset_saved(self) -> None:
        self._reset_handle = None
        if self._save_state == "saved":
            self._save_state = "idle"

    def _persist(self, character: Character) -> bool:
        """Write the record and its index entry. Returns False on a write failure."""
        self._cancel_reset()
        self._save_state = "saving"
        try:
            self._storage.save_character(character)
            record = project(character, self._library)
            self._index = [record, *(r for r in self._index if r.id != character.id)]
            self._storage.save_character_list(self._index)
        except StorageWriteError:
            logger.exception("Failed to save character %s", character.id)
            self._save_state = "error"
            return False
        logger.debug("saved character %s", character.id)
        self._save_state = "saved"
        self._reset_handle = self._scheduler.call_later(
            self._saved_reset_delay, self._reset_saved
        )
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def update(self, transform: Callable[[Character], Character]) -> Character:
        """Apply transform to the active character and schedule a debounced save.

        id and version are kept, updatedAt is re-stamped, and the result is
        validated; an invalid result raises ValidationError and leaves the
        active character untouched.
        """
        current = self._active
        data = transform(current).model_dump()
        data.update(id=current.id, version=SCHEMA_VERSION, updated_at=self._now())
        updated = self._normalized(Character.model_validate(data))
        self._active = updated
        self._schedule_save(updated)
        return updated

    def create_new(self) -> Character:
        """Start a blank character. Nothing is written until its first update."""
        fresh = self._fresh()
        self._set_active(fresh)
        return fresh

    def save_as_new(self) -> Character:
        """Fork the active character under a new id and save it right away."""
        now = self._now()
        fork = self._active.model_copy(
            update={"id": self._new_id(), "created_at": now, "updated_at": now},
            deep=True,
        )
        self._persist(fork)
        self._set_active(fork)
        return fork

    def duplicate(self, character_id: str) -> Character | None:
        stored = self._storage.read_character(character_id)
        if stored is None:
            return None
        now = self._now()
        copy = stored.model_copy(
            update={
                "id": self._new_id(),
                "name": f"{stored.name}{COPY_SUFFIX}",
                "created_at": now,
                "updated_at": now,
            },
            deep=True,
        )
        copy = self._normalized(copy)
        self._persist(copy)
        self._set_active(copy)
        return copy

    def delete(self, character_id: str) -> None:
        """Remove a saved character. Deleting the active one starts a fresh character."""
        try:
            self._storage.delete_character(character_id)
        except StorageWriteError:
            logger.exception("Failed to delete character %s", character_id)
            self._save_state = "error"
            return
        self._debouncer.cancel(character_id)
        self._index = [r for r in self._index if r.id != character_id]
        if self._active.id == character_id:
            self._set_active(self._fresh())

    def load(self, character_id: str) -> Character | None:
        stored = self._storage.read_character(character_id)
        if stored is None:
            return None
        stored = self._normalized(stored)
        self._set_active(stored)
        return stored

    def export_json(self, character_id: str) -> str | None:
        stored = self._storage.read_character(character_id)
        if stored is None:
            return None
        return stored.model_dump_json(indent=2, by_alias=True, exclude_none=True)

    def import_json(self, text: str) -> ImportResult:
        parsed = parse_character_json(text, self._new_id(), self._now())
        if parsed is None:
            return ImportResult(success=False, message=IMPORT_ERROR_MESSAGE)
        imported = self._normalized(parsed)
        self._persist(imported)
        self._set_active(imported)
        return ImportResult(success=True)

    def on_library_changed(self, library: Library) -> None:
        """Relabel the index, then retag the active goal if its option is gone."""
        self._relabel_index(library)
        goal = normalize_goal(self._active.goal, library)
        if goal is self._active.goal:
            return
        logger.debug(
            "goal %r no longer in library, converting to custom text", goal.value
        )
        self._active = self._active.model_copy(update={"goal": goal})
        if self._is_saved(self._active.id):
            self._schedule_save(self._active)

    def _relabel_index(self, library: Library) -> None:
        """Recompute index labels from the stored records; writes only if one changed."""
        relabeled = []
        for record in self._index:
            stored = self._storage.read_character(record.id)
            if stored is None:
                relabeled.append(record)
                continue
            relabeled.append(record.model_copy(update={
                "style_label": resolve_style_label(stored, library),
                "role_label": resolve_role_label(stored, library),
            }))
        if relabeled == self._index:
            return
        self._index = relabeled
        try:
            self._storage.save_character_list(self._index)
        except StorageWriteError:
            logger.exception("Failed to save relabeled character list")
            self._save_state = "error"

    def flush(self) -> None:
        """Run every pending save now."""
        self._debouncer.flush()

    def close(self) -> None:
        self.flush()
        self._cancel_reset()
        self._unsubscribe()
