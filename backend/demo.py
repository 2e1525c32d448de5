"""Create demo characters for development/testing."""

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

from lf_sheet.library import LibraryManager
from lf_sheet.models import Character
from lf_sheet.projection import project
from lf_sheet.storage import Storage, character_key

DEMO_CHARACTERS = [
    {
        "name": "Nova",
        "style_id": "intrepid",
        "role_id": "pilot",
        "number": 4,
        "goal": {"type": "preset", "value": "become-captain"},
        "notes": "Flew the Raptor through the Crab Nebula blindfolded. Allegedly.",
    },
    {
        "name": "Doc Halvorsen",
        "style_id": "savvy",
        "role_id": "doctor",
        "number": 2,
        "goal": {"type": "preset", "value": "solve-weird-space-mysteries"},
        "gear_notes": "Medical scanner, a flask of something green",
    },
    {
        "name": "K-7",
        "style_id": "android",
        "role_id": "custom-role",
        "role_custom_label": "Cargo Master",
        "number": 5,
        "goal": {"type": "custom", "value": "Understand why humans laugh"},
    },
]


def create_demo_data(data_dir: Path) -> None:
    """Wipe saved characters in data_dir and write fresh demo characters."""
    storage = Storage(data_dir)
    for record in storage.read_character_list() or []:
        storage.remove(character_key(record.id))

    library = LibraryManager(storage).library
    start = datetime.now(timezone.utc)
    index = []
    for offset, fields in enumerate(DEMO_CHARACTERS):
        # Stagger timestamps so the first entry is the most recent
        stamp = (start - timedelta(minutes=offset)).isoformat()
        character = Character(
            id=str(uuid.uuid4()),
            created_at=stamp,
            updated_at=stamp,
            **fields,
        )
        storage.save_character(character)
        index.append(project(character, library))
    storage.save_character_list(index)
