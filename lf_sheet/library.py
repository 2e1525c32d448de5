"""Option library — built-in defaults merged with the user's customizations.

Merge rule, applied to each category (styles, roles, goals) independently:

  1. Walk the built-in defaults in their canonical order. If the stored
     library has an option with the same id, use the stored one instead, so
     a renamed or recolored default keeps its id and position.
  2. Append the stored options whose source is "custom", in stored order.
     A custom option reusing a default id, or an id already appended, is
     skipped; no id appears twice in a merged list.

Defaults missing from the stored data come back on every load, so a new
release can ship revised default lists without clobbering custom options.

show_defaults is a display filter only. It is never persisted and has no
effect on merging.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from lf_sheet.models import Library, Option, OptionCategory, OPTION_CATEGORIES
from lf_sheet.storage import Storage

logger = logging.getLogger(__name__)

LibraryListener = Callable[[Library], None]

_DEFAULT_STYLES = [
    Option(id="alien", label="Alien", source="default", color="#22d3ee"),
    Option(id="android", label="Android", source="default", color="#e2e8f0"),
    Option(id="dangerous", label="Dangerous", source="default", color="#f97316"),
    Option(id="heroic", label="Heroic", source="default", color="#facc15"),
    Option(id="hot-shot", label="Hot-Shot", source="default", color="#f87171"),
    Option(id="intrepid", label="Intrepid", source="default", color="#4ade80"),
    Option(id="savvy", label="Savvy", source="default", color="#818cf8"),
]

_DEFAULT_ROLES = [
    Option(id="doctor", label="Doctor", source="default", color="#22d3ee"),
    Option(id="envoy", label="Envoy", source="default", color="#f97316"),
    Option(id="engineer", label="Engineer", source="default", color="#38bdf8"),
    Option(id="explorer", label="Explorer", source="default", color="#a78bfa"),
    Option(id="pilot", label="Pilot", source="default", color="#f59e0b"),
    Option(id="scientist", label="Scientist", source="default", color="#4ade80"),
    Option(id="soldier", label="Soldier", source="default", color="#f87171"),
]

_DEFAULT_GOALS = [
    Option(id="become-captain", label="Become Captain", source="default"),
    Option(id="meet-new-aliens", label="Meet New Aliens", source="default"),
    Option(id="shoot-bad-guys", label="Shoot Bad Guys", source="default"),
    Option(id="find-new-worlds", label="Find New Worlds", source="default"),
    Option(id="solve-weird-space-mysteries", label="Solve Weird Space Mysteries", source="default"),
    Option(id="prove-yourself", label="Prove Yourself", source="default"),
    Option(id="keep-being-awesome", label="Keep Being Awesome", source="default"),
]

DEFAULT_LIBRARY = Library(styles=_DEFAULT_STYLES, roles=_DEFAULT_ROLES, goals=_DEFAULT_GOALS)

# Standard issue kit every crew member carries.
UNIFORM_GEAR = (
    "Consortium uniform (vacc-suit)",
    "Multi-tool & translator device",
    "Variable-beam phase pistol (stun default)",
)


def default_library() -> Library:
    return DEFAULT_LIBRARY.model_copy(deep=True)


def merge_options(defaults: list[Option], stored: list[Option] | None) -> list[Option]:
    stored = stored or []
    stored_by_id: dict[str, Option] = {}
    for option in stored:
        stored_by_id.setdefault(option.id, option)

    merged = [stored_by_id.get(option.id, option) for option in defaults]
    seen = {option.id for option in merged}
    for option in stored:
        if option.source == "custom" and option.id not in seen:
            merged.append(option)
            seen.add(option.id)
    return merged


def merge_library(stored: Library | None) -> Library:
    """Merge a stored library over the built-in defaults. None → defaults."""
    if stored is None:
        return default_library()
    return Library(
        styles=merge_options(DEFAULT_LIBRARY.styles, stored.styles),
        roles=merge_options(DEFAULT_LIBRARY.roles, stored.roles),
        goals=merge_options(DEFAULT_LIBRARY.goals, stored.goals),
    )


class LibraryManager:
    """Owns the merged library snapshot for a session.

    Edits go through update(), which persists immediately (library edits
    are rare and should be durable at once) and then notifies subscribers
    with the new snapshot.
    """

    def __init__(self, storage: Storage, *, id_factory: Callable[[], str] | None = None) -> None:
        self._storage = storage
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._listeners: list[LibraryListener] = []
        self._library = self.load()
        self.show_defaults = True

    @property
    def library(self) -> Library:
        return self._library

    def load(self) -> Library:
        return self.merge(self._storage.read_library())

    @staticmethod
    def merge(stored: Library | None) -> Library:
        return merge_library(stored)

    def update(self, updater: Callable[[Library], Library]) -> Library:
        """Apply a pure transformation, persist it, and notify subscribers.

        The in-memory snapshot is replaced and subscribers are notified even
        if the write fails; the StorageWriteError is then re-raised.
        """
        self._library = updater(self._library)
        for listener in list(self._listeners):
            listener(self._library)
        self._storage.save_library(self._library)
        logger.debug("library saved")
        return self._library

    def subscribe(self, listener: LibraryListener) -> Callable[[], None]:
        """Register a callback for new library snapshots. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def visible_options(self, category: OptionCategory) -> list[Option]:
        options = self._library.options(category)
        if self.show_defaults:
            return list(options)
        return [o for o in options if o.source == "custom"]

    def visible_library(self) -> Library:
        return Library(**{c: self.visible_options(c) for c in OPTION_CATEGORIES})

    def add_custom_option(
        self,
        category: OptionCategory,
        label: str,
        color: str | None = None,
        description: str | None = None,
    ) -> Option:
        label = label.strip()
        if not label:
            raise ValueError("Option label must not be blank")
        option = Option(
            id=self._new_id(),
            label=label,
            source="custom",
            color=color if category != "goals" else None,
            description=(description or "").strip() or None,
        )
        self.update(
            lambda lib: lib.model_copy(update={category: [*lib.options(category), option]})
        )
        return option

    def remove_option(self, category: OptionCategory, option_id: str) -> bool:
        """Remove an option by id. Returns False if it was not in the list."""
        if not any(o.id == option_id for o in self._library.options(category)):
            return False
        self.update(
            lambda lib: lib.model_copy(
                update={category: [o for o in lib.options(category) if o.id != option_id]}
            )
        )
        return True
