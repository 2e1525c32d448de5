"""JSON file storage.

A flat key/value store: each key is one JSON file under a configurable base
directory. There is no database; reads and writes go through plain helper
methods that load and dump JSON.

Keys:

    {base}/
      lf.library.v1.json          ← the option library (styles, roles, goals)
      lf.characters.v1.json       ← list of CharacterIndexRecord objects
      lf.character.{id}.v1.json   ← one full Character record per id

Reads never raise for bad content: a file that is not valid JSON, or that
does not validate against its model, is logged and treated as absent.
Writes go to a sibling .tmp file that replaces the target, so a failed write
leaves the previous value readable. Writes that fail at the OS level raise
StorageWriteError.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from lf_sheet.models import Character, CharacterIndexRecord, Library

logger = logging.getLogger(__name__)

LIBRARY_KEY = "lf.library.v1"
CHARACTERS_KEY = "lf.characters.v1"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_INDEX_ADAPTER = TypeAdapter(list[CharacterIndexRecord])


def character_key(character_id: str) -> str:
    return f"lf.character.{character_id}.v1"


def is_valid_key(key: str) -> bool:
    return bool(_KEY_PATTERN.match(key))


class StorageWriteError(RuntimeError):
    """Raised when a record cannot be written or removed (disk full, permissions)."""


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Key/value primitives
    # ------------------------------------------------------------------

    def _path(self, key: str) -> Path:
        if not is_valid_key(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._base / f"{key}.json"

    def put(self, key: str, value: Any) -> None:
        """Write value under key. The old value stays intact if the write fails."""
        path = self._path(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(value, indent=2))
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise StorageWriteError(f"Cannot write {key} to {self._base}") from e

    def get(self, key: str) -> Any | None:
        """Return the stored value, or None if missing or unreadable."""
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text())
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Failed to read %s from storage: %s", key, e)
            return None

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Cannot remove {key} from {self._base}") from e

    # ------------------------------------------------------------------
    # Library
    # ------------------------------------------------------------------

    def read_library(self) -> Library | None:
        raw = self.get(LIBRARY_KEY)
        if raw is None:
            return None
        try:
            return Library.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored library is invalid, ignoring it: %s", e)
            return None

    def save_library(self, library: Library) -> None:
        self.put(LIBRARY_KEY, library.to_json_dict())

    # ------------------------------------------------------------------
    # Character index
    # ------------------------------------------------------------------

    def read_character_list(self) -> list[CharacterIndexRecord] | None:
        raw = self.get(CHARACTERS_KEY)
        if raw is None:
            return None
        try:
            return _INDEX_ADAPTER.validate_python(raw)
        except ValidationError as e:
            logger.warning("Stored character list is invalid, ignoring it: %s", e)
            return None

    def save_character_list(self, records: list[CharacterIndexRecord]) -> None:
        self.put(CHARACTERS_KEY, [r.to_json_dict() for r in records])

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    def read_character(self, character_id: str) -> Character | None:
        key = character_key(character_id)
        if not is_valid_key(key):
            return None
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return Character.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored character %s is invalid, ignoring it: %s", character_id, e)
            return None

    def save_character(self, character: Character) -> None:
        self.put(character_key(character.id), character.to_json_dict())

    def delete_character(self, character_id: str) -> None:
        """Remove the full record and drop it from the stored index."""
        key = character_key(character_id)
        if not is_valid_key(key):
            return
        self.remove(key)
        records = self.read_character_list()
        if records is None:
            return
        self.save_character_list([r for r in records if r.id != character_id])
