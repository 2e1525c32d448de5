import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from lf_sheet.characters import CharacterManager
from lf_sheet.library import LibraryManager
from lf_sheet.storage import Storage

TEST_DATA_DIR = Path("data-tests")


class ManualTimer:
    def __init__(self, when: float, callback) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose time only moves when a test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        """Run every timer due within the next `seconds`, earliest first."""
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target
        self._timers = [t for t in self._timers if not t.cancelled]

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)


class StepClock:
    """Returns a later UTC time on every call."""

    def __init__(self) -> None:
        self.current = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe data-tests/ before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture
def storage() -> Storage:
    return Storage(TEST_DATA_DIR)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def library_manager(storage) -> LibraryManager:
    return LibraryManager(storage)


@pytest.fixture
def make_session(storage, library_manager, scheduler, clock):
    """Build a CharacterManager over the shared storage, library and scheduler."""

    def make(**kwargs) -> CharacterManager:
        return CharacterManager(storage, library_manager, scheduler, clock=clock, **kwargs)

    return make


@pytest.fixture
def session(make_session) -> CharacterManager:
    return make_session()
