"""Deferred work — a scheduler protocol and a keyed trailing-edge debouncer.

Anything that runs later (debounced saves, the saved → idle status reset)
goes through a Scheduler:

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

AsyncioScheduler is the production implementation; it uses the running
event loop that serves the editor API. Tests use a manually advanced
scheduler (see conftest.py) so no test ever sleeps for a debounce window.

Debouncer keeps at most one pending call per key. Scheduling a key that is
already pending replaces both its timer and its callback, so a burst of
calls collapses into one execution of the latest callback, delay seconds
after the last call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols — every scheduler implementation must match these signatures
# ---------------------------------------------------------------------------

class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# AsyncioScheduler — timers on an asyncio event loop
# ---------------------------------------------------------------------------

class AsyncioScheduler:
    """Schedules callbacks on an event loop.

    Args:
        loop: Loop to schedule on. If omitted, the loop running at the time
              of each call_later() is used, so calls must come from inside
              a coroutine or callback on that loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


# ---------------------------------------------------------------------------
# Debouncer
# ---------------------------------------------------------------------------

class Debouncer:
    def __init__(self, scheduler: Scheduler, delay: float) -> None:
        self._scheduler = scheduler
        self._delay = delay
        self._pending: dict[str, tuple[TimerHandle, Callable[[], None]]] = {}

    @property
    def delay(self) -> float:
        return self._delay

    def schedule(self, key: str, callback: Callable[[], None]) -> None:
        """Run callback after the quiet period, replacing any pending call for key."""
        self.cancel(key)
        handle = self._scheduler.call_later(self._delay, lambda: self._fire(key))
        self._pending[key] = (handle, callback)
        logger.debug("debounce scheduled key=%s delay=%.3f", key, self._delay)

    def _fire(self, key: str) -> None:
        entry = self._pending.pop(key, None)
        if entry is None:
            return
        _, callback = entry
        callback()

    def cancel(self, key: str) -> bool:
        """Drop the pending call for key. Returns True if one was pending."""
        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        handle, _ = entry
        handle.cancel()
        logger.debug("debounce cancelled key=%s", key)
        return True

    def cancel_others(self, keep: str) -> list[str]:
        """Cancel every pending call except the one for keep. Returns the cancelled keys."""
        cancelled = [key for key in self._pending if key != keep]
        for key in cancelled:
            self.cancel(key)
        return cancelled

    def flush(self) -> None:
        """Run every pending call now, in scheduling order."""
        for key in list(self._pending):
            entry = self._pending.pop(key, None)
            if entry is None:
                continue
            handle, callback = entry
            handle.cancel()
            callback()

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)
