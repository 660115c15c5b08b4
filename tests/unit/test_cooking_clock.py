# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest

import kitchen.clock as clock_mod
from kitchen.broadcaster import Observer, UpdateBroadcaster
from kitchen.clock import CookingClock
from kitchen.enums.session_status import SessionStatus
from kitchen.errors import NotFoundError
from kitchen.models import CookingStep
from kitchen.scheduler import SimulatedScheduler
from kitchen.store import SessionStore


class Harness:
    """Clock wired to a virtual scheduler with one listening observer."""

    def __init__(self) -> None:
        self.scheduler = SimulatedScheduler()
        self.store = SessionStore()
        self.broadcaster = UpdateBroadcaster(
            max_queue_depth=1024,
            clock_ms=lambda: int(self.scheduler.now() * 1000),
        )
        self.clock = CookingClock(
            store=self.store,
            broadcaster=self.broadcaster,
            scheduler=self.scheduler,
            tick_interval_s=1.0,
            clock_ms=lambda: int(self.scheduler.now() * 1000),
        )
        self.observer: Observer = self.broadcaster.subscribe()

    def types(self) -> list[str]:
        return [m["type"] for m in self.observer.drain()]


def one_minute_steps(n: int) -> tuple[CookingStep, ...]:
    return tuple(CookingStep(i, f"Step {i}", 1) for i in range(1, n + 1))


def test_two_step_session_advances_after_sixty_ticks():
    h = Harness()
    h.store.create("s1", "Rice", one_minute_steps(2))

    h.clock.start("s1")
    assert h.types() == ["cooking_step_start"]

    h.scheduler.advance(60)

    messages = h.observer.drain()
    types = [m["type"] for m in messages]
    assert types == ["timer_update", "cooking_step_complete", "cooking_step_start"]
    assert messages[1]["data"]["step"] == 1
    assert messages[2]["data"]["stepNumber"] == 2

    session = h.store.get("s1")
    assert session.current_step_index == 2
    assert session.time_remaining_s == 60


def test_session_runs_to_completion_and_stops_ticking():
    h = Harness()
    h.store.create("s1", "Rice", one_minute_steps(2))
    h.clock.start("s1")

    h.scheduler.advance(200)

    assert h.store.get("s1").status is SessionStatus.COMPLETED
    assert h.types().count("cooking_complete") == 1
    assert not h.clock.is_ticking("s1")
    assert h.scheduler.pending() == 0


def test_start_unknown_session_emits_nothing():
    h = Harness()

    with pytest.raises(NotFoundError):
        h.clock.start("missing")

    assert h.observer.drain() == []
    assert h.clock.active_timer_count == 0


def test_stop_cancels_ticks():
    h = Harness()
    h.store.create("s1", "Rice", one_minute_steps(2))
    h.clock.start("s1")
    h.scheduler.advance(10)

    stopped = h.clock.stop("s1")
    remaining_before = h.observer.drain()

    assert stopped.status is SessionStatus.STOPPED
    assert [m["type"] for m in remaining_before][-1] == "cooking_stopped"
    assert not h.clock.is_ticking("s1")

    h.scheduler.advance(300)

    assert h.observer.drain() == []
    assert h.store.get("s1").status is SessionStatus.STOPPED


def test_stop_terminal_session_is_noop():
    h = Harness()
    h.store.create("s1", "Rice", one_minute_steps(1))
    h.clock.start("s1")
    h.scheduler.advance(60)
    h.observer.drain()

    session = h.clock.stop("s1")

    assert session.status is SessionStatus.COMPLETED
    assert h.observer.drain() == []


def test_failing_tick_is_logged_and_clock_keeps_ticking(monkeypatch: pytest.MonkeyPatch):
    h = Harness()
    h.store.create("s1", "Rice", one_minute_steps(1))
    h.clock.start("s1")

    logged: list[dict[str, Any]] = []
    monkeypatch.setattr(clock_mod, "log_event", logged.append)

    real_tick = clock_mod.reducer.tick
    calls = {"n": 0}

    def flaky_tick(session, ts_ms):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("sensor glitch")
        return real_tick(session, ts_ms)

    monkeypatch.setattr(clock_mod.reducer, "tick", flaky_tick)

    h.scheduler.advance(1)
    assert [e["event_type"] for e in logged] == ["COOKING_TICK_FAILED"]
    assert h.clock.is_ticking("s1")
    assert h.store.get("s1").time_remaining_s == 60

    h.scheduler.advance(60)
    assert h.store.get("s1").status is SessionStatus.COMPLETED


def test_removed_session_tick_is_orphaned(monkeypatch: pytest.MonkeyPatch):
    h = Harness()
    h.store.create("s1", "Rice", one_minute_steps(1))
    h.clock.start("s1")

    logged: list[dict[str, Any]] = []
    monkeypatch.setattr(clock_mod, "log_event", logged.append)

    h.store.remove("s1")
    h.scheduler.advance(5)

    assert [e["event_type"] for e in logged] == ["COOKING_TICK_ORPHANED"]
    assert h.clock.active_timer_count == 0


def test_shutdown_cancels_every_countdown():
    h = Harness()
    h.store.create("a", "Rice", one_minute_steps(1))
    h.store.create("b", "Soup", one_minute_steps(1))
    h.clock.start("a")
    h.clock.start("b")
    assert h.clock.active_timer_count == 2

    h.clock.shutdown()
    h.observer.drain()
    h.scheduler.advance(120)

    assert h.clock.active_timer_count == 0
    assert h.observer.drain() == []
    assert h.store.get("a").time_remaining_s == 60
