"""Tests for the JSON key/value store and its typed record helpers."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from lf_sheet.models import Character, CharacterIndexRecord, GoalValue, Library, Option
from lf_sheet.storage import (
    CHARACTERS_KEY,
    LIBRARY_KEY,
    StorageWriteError,
    character_key,
)


def _character(character_id: str = "c1", name: str = "Nova") -> Character:
    return Character(
        id=character_id,
        created_at="2026-01-01T12:00:00+00:00",
        updated_at="2026-01-01T12:00:00+00:00",
        name=name,
        style_id="intrepid",
        role_id="pilot",
        goal=GoalValue(type="preset", value="become-captain"),
    )


def _record(character_id: str, name: str = "X") -> CharacterIndexRecord:
    return CharacterIndexRecord(
        id=character_id, name=name, updated_at="t", style_label="S", role_label="R"
    )


# ── Key/value primitives ────────────────────────────────


def test_get_missing_returns_none(storage):
    assert storage.get("nothing.here") is None


def test_put_get_roundtrip(storage):
    storage.put("some.key", {"a": [1, 2]})
    assert storage.get("some.key") == {"a": [1, 2]}


def test_put_writes_pretty_json_file(storage):
    storage.put("some.key", {"a": 1})
    path = storage.base_path / "some.key.json"
    assert path.read_text() == json.dumps({"a": 1}, indent=2)


def test_remove(storage):
    storage.put("some.key", 1)
    storage.remove("some.key")
    assert storage.get("some.key") is None


def test_remove_missing_is_noop(storage):
    storage.remove("never.written")


@pytest.mark.parametrize("key", ["../escape", "a/b", "", "spaces here"])
def test_invalid_key_rejected(storage, key):
    with pytest.raises(ValueError):
        storage.put(key, 1)


def test_corrupt_json_reads_as_absent(storage, caplog):
    (storage.base_path / "broken.json").write_text("{not json")
    with caplog.at_level("WARNING"):
        assert storage.get("broken") is None
    assert "broken" in caplog.text


def test_write_failure_raises_storage_write_error(storage):
    with patch.object(Path, "write_text", side_effect=OSError("No space left on device")):
        with pytest.raises(StorageWriteError) as exc_info:
            storage.put("some.key", 1)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_failed_write_keeps_previous_value(storage):
    storage.put("some.key", {"a": 1})
    real_write_text = Path.write_text

    def write_half_then_fail(self, data, *args, **kwargs):
        real_write_text(self, data[:3])
        raise OSError("No space left on device")

    with patch.object(Path, "write_text", write_half_then_fail):
        with pytest.raises(StorageWriteError):
            storage.put("some.key", {"a": 2})
    assert storage.get("some.key") == {"a": 1}
    assert not (storage.base_path / "some.key.json.tmp").exists()


def test_failed_replace_keeps_previous_value(storage):
    storage.save_character_list([_record("a")])
    with patch("lf_sheet.storage.os.replace", side_effect=OSError("read-only file system")):
        with pytest.raises(StorageWriteError):
            storage.save_character_list([])
    assert [r.id for r in storage.read_character_list()] == ["a"]
    assert list(storage.base_path.glob("*.tmp")) == []


# ── Library ──────────────────────────────────────────────


def test_read_library_absent(storage):
    assert storage.read_library() is None


def test_library_roundtrip(storage):
    lib = Library(styles=[Option(id="x", label="X", source="custom", color="#fff")])
    storage.save_library(lib)
    assert storage.read_library() == lib


def test_library_schema_mismatch_reads_as_absent(storage):
    storage.put(LIBRARY_KEY, {"styles": "not a list"})
    assert storage.read_library() is None


# ── Character index ──────────────────────────────────────


def test_character_list_roundtrip(storage):
    records = [_record("a"), _record("b")]
    storage.save_character_list(records)
    assert storage.read_character_list() == records


def test_character_list_stored_camel_case(storage):
    storage.save_character_list([_record("a")])
    raw = storage.get(CHARACTERS_KEY)
    assert raw[0]["styleLabel"] == "S"
    assert "portraitThumb" not in raw[0]


def test_corrupt_character_list_reads_as_absent(storage):
    (storage.base_path / f"{CHARACTERS_KEY}.json").write_text("[{")
    assert storage.read_character_list() is None


def test_character_list_not_a_list_reads_as_absent(storage):
    storage.put(CHARACTERS_KEY, {"id": "a"})
    assert storage.read_character_list() is None


# ── Characters ───────────────────────────────────────────


def test_character_roundtrip(storage):
    c = _character()
    storage.save_character(c)
    assert storage.read_character("c1") == c


def test_character_file_name(storage):
    storage.save_character(_character("abc"))
    assert (storage.base_path / "lf.character.abc.v1.json").is_file()
    assert character_key("abc") == "lf.character.abc.v1"


def test_read_missing_character(storage):
    assert storage.read_character("nope") is None


def test_read_character_with_unsafe_id(storage):
    assert storage.read_character("../../etc/passwd") is None


def test_invalid_stored_character_reads_as_absent(storage):
    storage.put(character_key("c1"), {"id": "c1", "version": 1})
    assert storage.read_character("c1") is None


def test_delete_character_removes_record_and_index_entry(storage):
    storage.save_character(_character("a"))
    storage.save_character(_character("b"))
    storage.save_character_list([_record("a"), _record("b")])

    storage.delete_character("a")

    assert storage.read_character("a") is None
    assert storage.read_character("b") is not None
    assert [r.id for r in storage.read_character_list()] == ["b"]


def test_delete_character_without_index(storage):
    storage.save_character(_character("a"))
    storage.delete_character("a")
    assert storage.read_character("a") is None
    assert storage.read_character_list() is None
