"""Lasers & Feelings character sheets — local persistence and sync core."""

from lf_sheet.characters import CharacterManager  # noqa: F401
from lf_sheet.debounce import AsyncioScheduler, Debouncer  # noqa: F401
from lf_sheet.library import DEFAULT_LIBRARY, LibraryManager, merge_library  # noqa: F401
from lf_sheet.projection import project  # noqa: F401
from lf_sheet.storage import Storage, StorageWriteError  # noqa: F401
