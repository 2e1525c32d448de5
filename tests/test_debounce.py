"""Tests for lf_sheet.debounce — Debouncer and AsyncioScheduler."""

import asyncio

from lf_sheet.debounce import AsyncioScheduler, Debouncer


class TestDebouncer:
    def test_runs_after_delay(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        debouncer.schedule("a", lambda: calls.append(1))
        scheduler.advance(0.4)
        assert calls == []
        scheduler.advance(0.2)
        assert calls == [1]
        assert not debouncer.is_pending("a")

    def test_burst_collapses_to_last_callback(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        for i in range(5):
            debouncer.schedule("a", lambda i=i: calls.append(i))
            scheduler.advance(0.3)
        assert calls == []
        scheduler.advance(0.3)
        assert calls == [4]

    def test_trailing_edge_restarts_window(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        debouncer.schedule("a", lambda: calls.append("first"))
        scheduler.advance(0.4)
        debouncer.schedule("a", lambda: calls.append("second"))
        scheduler.advance(0.4)
        assert calls == []
        scheduler.advance(0.2)
        assert calls == ["second"]

    def test_keys_are_independent(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        debouncer.schedule("a", lambda: calls.append("a"))
        debouncer.schedule("b", lambda: calls.append("b"))
        assert len(debouncer) == 2
        scheduler.advance(1)
        assert sorted(calls) == ["a", "b"]

    def test_cancel(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        debouncer.schedule("a", lambda: calls.append("a"))
        assert debouncer.cancel("a") is True
        assert debouncer.cancel("a") is False
        scheduler.advance(1)
        assert calls == []

    def test_cancel_others(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        for key in ("a", "b", "c"):
            debouncer.schedule(key, lambda key=key: calls.append(key))
        assert sorted(debouncer.cancel_others("b")) == ["a", "c"]
        scheduler.advance(1)
        assert calls == ["b"]

    def test_flush_runs_pending_now(self, scheduler) -> None:
        calls = []
        debouncer = Debouncer(scheduler, 0.5)
        debouncer.schedule("a", lambda: calls.append("a"))
        debouncer.schedule("b", lambda: calls.append("b"))
        debouncer.flush()
        assert calls == ["a", "b"]
        assert len(debouncer) == 0
        scheduler.advance(1)
        assert calls == ["a", "b"]


class TestAsyncioScheduler:
    async def test_call_later_on_running_loop(self) -> None:
        fired = asyncio.Event()
        AsyncioScheduler().call_later(0.01, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1)

    async def test_cancel(self) -> None:
        calls = []
        handle = AsyncioScheduler().call_later(0.01, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)
        assert calls == []

    async def test_debouncer_with_real_loop(self) -> None:
        calls = []
        debouncer = Debouncer(AsyncioScheduler(asyncio.get_running_loop()), 0.02)
        for i in range(3):
            debouncer.schedule("a", lambda i=i: calls.append(i))
        await asyncio.sleep(0.1)
        assert calls == [2]
