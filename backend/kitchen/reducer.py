"""
Pure cooking-session reducer.

(session, ts_ms) -> (new_session, events)

Rules:
- Pure: no side effects, no IO, no clocks (ts_ms is supplied by the caller).
- Deterministic: output depends only on inputs.
- Total: ticks on a non-cooking session are explicitly ignored.

Per-session event grammar:
    cooking_step_start(1)
    ( timer_update* cooking_step_complete(n) cooking_step_start(n+1) )*
    timer_update* cooking_step_complete(N) cooking_complete
"""

from __future__ import annotations

from dataclasses import replace

from constants import TIMER_UPDATE_EVERY_S
from kitchen.enums.session_status import SessionStatus
from kitchen.errors import ValidationError
from kitchen.events import BroadcastEvent, BroadcastType
from kitchen.models import CookingSession, CookingStep

Transition = tuple[CookingSession, tuple[BroadcastEvent, ...]]


# =============================================================================
# Event constructors
# =============================================================================

def _step_start(session: CookingSession, step: CookingStep, ts_ms: int) -> BroadcastEvent:
    return BroadcastEvent(
        type=BroadcastType.COOKING_STEP_START,
        data={
            "sessionId": session.id,
            "recipeName": session.recipe_name,
            "stepNumber": step.index,
            "instruction": step.instruction,
            "duration": step.duration_minutes,
            "timeRemaining": step.duration_seconds,
        },
        ts_ms=ts_ms,
    )


def _step_complete(session: CookingSession, step: CookingStep, ts_ms: int) -> BroadcastEvent:
    return BroadcastEvent(
        type=BroadcastType.COOKING_STEP_COMPLETE,
        data={
            "sessionId": session.id,
            "recipeName": session.recipe_name,
            "step": step.index,
            "stepNumber": step.index,
            "instruction": step.instruction,
        },
        ts_ms=ts_ms,
    )


def _timer_update(session: CookingSession, ts_ms: int) -> BroadcastEvent:
    return BroadcastEvent(
        type=BroadcastType.TIMER_UPDATE,
        data={
            "sessionId": session.id,
            "currentStep": session.current_step_index,
            "timeRemaining": session.time_remaining_s,
        },
        ts_ms=ts_ms,
    )


def _cooking_complete(session: CookingSession, ts_ms: int) -> BroadcastEvent:
    return BroadcastEvent(
        type=BroadcastType.COOKING_COMPLETE,
        data={
            "sessionId": session.id,
            "recipeName": session.recipe_name,
            "message": f"{session.recipe_name} is ready!",
            "status": session.status.value,
        },
        ts_ms=ts_ms,
    )


def _cooking_stopped(session: CookingSession, ts_ms: int) -> BroadcastEvent:
    return BroadcastEvent(
        type=BroadcastType.COOKING_STOPPED,
        data={
            "sessionId": session.id,
            "recipeName": session.recipe_name,
            "stoppedAtStep": session.current_step_index,
            "status": session.status.value,
        },
        ts_ms=ts_ms,
    )


# =============================================================================
# Transitions
# =============================================================================

def begin(session: CookingSession, ts_ms: int) -> Transition:
    """
    STARTING -> COOKING(1).

    Raises:
        ValidationError if the session was already started.
    """
    if session.status is not SessionStatus.STARTING:
        raise ValidationError(
            f"Session {session.id} cannot start from status {session.status.value}"
        )

    first = session.steps[0]
    new = replace(
        session,
        current_step_index=1,
        status=SessionStatus.COOKING,
        time_remaining_s=first.duration_seconds,
        started_at=ts_ms / 1000.0,
    )
    return new, (_step_start(new, first, ts_ms),)


def tick(session: CookingSession, ts_ms: int) -> Transition:
    """
    Advance the countdown by one second.

    A step whose remaining time is already 0 (zero-minute step) expires
    on this tick instead of counting below zero.
    """
    if session.status is not SessionStatus.COOKING:
        return session, ()

    remaining = max(0, session.time_remaining_s - 1)
    ticked = replace(session, time_remaining_s=remaining)

    if remaining > 0:
        if remaining % TIMER_UPDATE_EVERY_S == 0:
            return ticked, (_timer_update(ticked, ts_ms),)
        return ticked, ()

    finished = session.steps[session.current_step_index - 1]
    events: list[BroadcastEvent] = [_step_complete(ticked, finished, ts_ms)]

    if session.current_step_index < session.total_steps:
        nxt = session.steps[session.current_step_index]
        advanced = replace(
            ticked,
            current_step_index=nxt.index,
            time_remaining_s=nxt.duration_seconds,
        )
        events.append(_step_start(advanced, nxt, ts_ms))
        return advanced, tuple(events)

    done = replace(
        ticked,
        status=SessionStatus.COMPLETED,
        current_step_index=session.total_steps,
        time_remaining_s=0,
        ended_at=ts_ms / 1000.0,
    )
    events.append(_cooking_complete(done, ts_ms))
    return done, tuple(events)


def halt(session: CookingSession, ts_ms: int) -> Transition:
    """
    Any non-terminal status -> STOPPED. Terminal sessions are returned as-is.

    current_step_index is left at the step that was running, which may be
    the last one: index == total_steps alone does not mean COMPLETED.
    """
    if session.status.is_terminal:
        return session, ()

    stopped = replace(
        session,
        status=SessionStatus.STOPPED,
        time_remaining_s=0,
        ended_at=ts_ms / 1000.0,
    )
    return stopped, (_cooking_stopped(stopped, ts_ms),)
