# pylint: disable=missing-module-docstring,missing-function-docstring

import math
from typing import Any

import pytest

import kitchen.voice as voice_mod
from kitchen.enums.session_status import SessionStatus
from kitchen.scheduler import SimulatedScheduler
from kitchen.voice import VoiceCommands
from session.context import KitchenContext


def make_voice() -> tuple[VoiceCommands, KitchenContext, SimulatedScheduler]:
    scheduler = SimulatedScheduler()
    ctx = KitchenContext(scheduler=scheduler, clock_ms=lambda: int(scheduler.now() * 1000))
    return VoiceCommands(ctx), ctx, scheduler


def test_start_cooking_creates_simulated_session():
    voice, ctx, _ = make_voice()

    reply = voice.handle("Start  Cooking", {"recipeName": "Chili"})

    assert reply.success is True
    assert reply.action == "cooking_started"
    assert reply.data["totalSteps"] == 5
    session = ctx.store.get(reply.data["sessionId"])
    assert session.status is SessionStatus.COOKING
    assert session.recipe_name == "Chili"


def test_start_cooking_requires_recipe_name():
    voice, ctx, _ = make_voice()

    reply = voice.handle("start cooking", {})

    assert reply.success is False
    assert reply.message == "Please specify a recipe name"
    assert len(ctx.store) == 0


def test_set_timer_runs_single_step_session():
    voice, ctx, scheduler = make_voice()

    reply = voice.handle("set timer", {"minutes": 2})
    assert reply.to_dict()["action"] == "timer_started"
    assert reply.message == "Timer set for 2 minutes"

    scheduler.advance(120)
    assert ctx.store.get(reply.data["sessionId"]).status is SessionStatus.COMPLETED


@pytest.mark.parametrize(
    "params",
    [{}, {"minutes": 0}, {"minutes": "five"}, {"minutes": math.inf}, {"minutes": math.nan}],
)
def test_set_timer_requires_positive_minutes(params):
    voice, _, _ = make_voice()

    reply = voice.handle("set timer", params)

    assert reply.success is False
    assert reply.message == "Please specify timer duration"


def test_check_status_reports_latest_session():
    voice, _, scheduler = make_voice()

    assert voice.handle("check status").message == "No active cooking sessions"

    voice.handle("start cooking", {"recipeName": "Chili"})
    scheduler.advance(30)

    reply = voice.handle("check status")
    assert reply.action == "status_reported"
    assert reply.message == "Chili is on step 1 of 5 with 1 minutes remaining"
    assert reply.data["session"]["timeRemaining"] == 90


def test_stop_cooking_defaults_to_active_session():
    voice, ctx, _ = make_voice()

    assert voice.handle("stop cooking").success is False

    started = voice.handle("start cooking", {"recipeName": "Chili"})
    reply = voice.handle("stop cooking")

    assert reply.action == "cooking_stopped"
    assert ctx.store.get(started.data["sessionId"]).status is SessionStatus.STOPPED


def test_stop_cooking_unknown_id_is_a_failed_reply():
    voice, _, _ = make_voice()

    reply = voice.handle("stop cooking", {"sessionId": "ghost"})

    assert reply.success is False
    assert "ghost" in reply.message


def test_unknown_command_is_logged(monkeypatch: pytest.MonkeyPatch):
    logged: list[dict[str, Any]] = []
    monkeypatch.setattr(voice_mod, "log_event", logged.append)
    voice, _, _ = make_voice()

    reply = voice.handle("make coffee")

    assert reply.to_dict() == {
        "success": False,
        "message": "Unknown command",
        "action": None,
        "data": {},
    }
    assert logged == [{
        "event_type": "VOICE_COMMAND",
        "command": "make coffee",
        "success": False,
        "action": None,
    }]
