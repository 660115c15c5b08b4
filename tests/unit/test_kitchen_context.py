# pylint: disable=missing-module-docstring,missing-function-docstring

import math
from typing import Any

import pytest

import session.context as context_mod
from kitchen.models import CookingStep
from kitchen.scheduler import SimulatedScheduler
from session.context import KitchenContext


def make_context() -> tuple[KitchenContext, SimulatedScheduler]:
    scheduler = SimulatedScheduler()
    ctx = KitchenContext(scheduler=scheduler, clock_ms=lambda: 0)
    return ctx, scheduler


def test_failed_clock_start_leaves_no_session(monkeypatch: pytest.MonkeyPatch):
    logged: list[dict[str, Any]] = []
    monkeypatch.setattr(context_mod, "log_event", logged.append)
    ctx, scheduler = make_context()

    with pytest.raises(OverflowError):
        ctx.start_session("Stir fry", (CookingStep(1, "Stir", math.inf),), session_id="s1")

    assert "s1" not in ctx.store
    assert len(ctx.store) == 0
    assert ctx.clock.active_timer_count == 0
    assert scheduler.pending() == 0
    assert logged[-1]["event_type"] == "COOKING_SESSION_START_FAILED"
    assert logged[-1]["session_id"] == "s1"


def test_session_id_is_reusable_after_a_failed_start():
    ctx, _ = make_context()

    with pytest.raises(OverflowError):
        ctx.start_session("Stir fry", (CookingStep(1, "Stir", math.inf),), session_id="s1")

    session = ctx.start_session("Stir fry", (CookingStep(1, "Stir", 2),), session_id="s1")

    assert session.time_remaining_s == 120
    assert ctx.clock.is_ticking("s1")


def test_shutdown_cancels_timers_and_closes_observers():
    ctx, scheduler = make_context()
    observer = ctx.broadcaster.subscribe()
    ctx.start_session("Stew", (CookingStep(1, "Simmer", 5),), session_id="s1")
    ctx.appliances.preheat(180, "bake")

    ctx.shutdown()
    ctx.shutdown()

    assert scheduler.pending() == 0
    assert ctx.broadcaster.observer_count == 0
    assert observer.closed
