"""
Voice command dispatch.

Maps spoken command verbs onto core kitchen operations. Speech
recognition happens on the client; this module only sees the verb
and its parameters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from constants import DEFAULT_ESTIMATED_MINUTES, SECONDS_PER_MINUTE
from kitchen.errors import KitchenError
from kitchen.planner import simulation_steps, single_step
from kitchen.status import snapshot
from observability.logger import log_event

if TYPE_CHECKING:
    from session.context import KitchenContext


@dataclass(frozen=True)
class VoiceReply:
    success: bool
    message: str
    action: str | None = None
    data: dict[str, Any] = field(default_factory=lambda: {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "action": self.action,
            "data": dict(self.data),
        }


class VoiceCommands:
    """Verb -> handler table over a KitchenContext."""

    def __init__(self, context: KitchenContext) -> None:
        self._ctx = context
        self._handlers = {
            "start cooking": self._start_cooking,
            "set timer": self._set_timer,
            "check status": self._check_status,
            "stop cooking": self._stop_cooking,
        }

    def handle(self, command: str, parameters: dict[str, Any] | None = None) -> VoiceReply:
        verb = " ".join((command or "").lower().split())
        handler = self._handlers.get(verb)

        if handler is None:
            reply = VoiceReply(success=False, message="Unknown command")
        else:
            try:
                reply = handler(parameters or {})
            except KitchenError as exc:
                reply = VoiceReply(success=False, message=exc.message, action=None)

        log_event({
            "event_type": "VOICE_COMMAND",
            "command": verb,
            "success": reply.success,
            "action": reply.action,
        })
        return reply

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _start_cooking(self, params: dict[str, Any]) -> VoiceReply:
        recipe_name = str(params.get("recipeName") or "").strip()
        if not recipe_name:
            return VoiceReply(success=False, message="Please specify a recipe name")

        minutes = params.get("estimatedMinutes", DEFAULT_ESTIMATED_MINUTES)
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            minutes = DEFAULT_ESTIMATED_MINUTES

        session = self._ctx.start_session(recipe_name, simulation_steps(recipe_name, minutes))
        return VoiceReply(
            success=True,
            message=f"Starting to cook {recipe_name}",
            action="cooking_started",
            data={"sessionId": session.id, "totalSteps": session.total_steps},
        )

    def _set_timer(self, params: dict[str, Any]) -> VoiceReply:
        minutes = params.get("minutes")
        if (
            isinstance(minutes, bool)
            or not isinstance(minutes, (int, float))
            or not math.isfinite(minutes)
            or minutes <= 0
        ):
            return VoiceReply(success=False, message="Please specify timer duration")

        label = str(params.get("label") or "Timer")
        session = self._ctx.start_session(label, single_step(f"{label} running", minutes))
        return VoiceReply(
            success=True,
            message=f"Timer set for {minutes:g} minutes",
            action="timer_started",
            data={"sessionId": session.id},
        )

    def _check_status(self, params: dict[str, Any]) -> VoiceReply:
        active = self._ctx.status.active()
        if not active:
            return VoiceReply(
                success=True,
                message="No active cooking sessions",
                data={"session": None},
            )

        session = active[0]
        minutes = session.time_remaining_s // SECONDS_PER_MINUTE
        return VoiceReply(
            success=True,
            message=(
                f"{session.recipe_name} is on step {session.current_step_index} "
                f"of {session.total_steps} with {minutes} minutes remaining"
            ),
            action="status_reported",
            data={"session": snapshot(session)},
        )

    def _stop_cooking(self, params: dict[str, Any]) -> VoiceReply:
        session_id = params.get("sessionId")
        if not session_id:
            active = self._ctx.status.active()
            if not active:
                return VoiceReply(success=False, message="No active cooking sessions")
            session_id = active[0].id

        session = self._ctx.stop_session(str(session_id))
        return VoiceReply(
            success=True,
            message=f"Stopped cooking {session.recipe_name}",
            action="cooking_stopped",
            data={"session": snapshot(session)},
        )
