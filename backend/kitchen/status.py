"""
Read-only views over the session store.

Snapshots read straight through to the store: whatever the clock last
wrote is what a status query returns.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from constants import COMPLETE_PLACEHOLDER, HISTORY_LIMIT, IDLE_STATUS, STOPPED_PLACEHOLDER
from kitchen.enums.session_status import SessionStatus
from kitchen.models import CookingSession
from kitchen.store import SessionStore


def _iso(epoch_s: float | None) -> str | None:
    if epoch_s is None:
        return None
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def current_instruction(session: CookingSession) -> str:
    if session.status is SessionStatus.COMPLETED:
        return COMPLETE_PLACEHOLDER
    if session.status is SessionStatus.STOPPED:
        return STOPPED_PLACEHOLDER
    if session.status is SessionStatus.STARTING:
        return session.steps[0].instruction
    return session.steps[session.current_step_index - 1].instruction


def snapshot(session: CookingSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "recipeName": session.recipe_name,
        "status": session.status.value,
        "currentStep": session.current_step_index,
        "totalSteps": session.total_steps,
        "timeRemaining": session.time_remaining_s,
        "currentInstruction": current_instruction(session),
        "deviceId": session.device_id,
    }


class StatusQuery:
    """Client-facing accessor reconciling store state into wire shapes."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def status(self, session_id: str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError for an unknown id.
        """
        return snapshot(self._store.get(session_id))

    def active(self) -> list[CookingSession]:
        """Sessions currently counting down, most recently started first."""
        cooking = [s for s in self._store.list() if s.status is SessionStatus.COOKING]
        return sorted(cooking, key=lambda s: s.started_at or 0.0, reverse=True)

    def latest(self) -> CookingSession | None:
        """The session a kitchen display should show: the newest cooking one, else the last created."""
        active = self.active()
        if active:
            return active[0]
        sessions = self._store.list()
        return sessions[-1] if sessions else None

    def kitchen(self) -> dict[str, Any]:
        """Current-session view; `idle` with zeroed fields when no session exists."""
        session = self.latest()
        if session is None:
            return {
                "status": IDLE_STATUS,
                "currentStep": 0,
                "totalSteps": 0,
                "timeRemainingSeconds": 0,
                "currentInstruction": None,
            }
        return {
            "sessionId": session.id,
            "status": session.status.value,
            "currentStep": session.current_step_index,
            "totalSteps": session.total_steps,
            "timeRemainingSeconds": session.time_remaining_s,
            "currentInstruction": current_instruction(session),
        }

    def history(self, limit: int = HISTORY_LIMIT) -> list[dict[str, Any]]:
        """Finished (completed or stopped) sessions, newest first."""
        finished = [s for s in self._store.list() if s.status.is_terminal]
        finished.sort(key=lambda s: s.started_at or s.created_at, reverse=True)

        out: list[dict[str, Any]] = []
        for s in finished[:limit]:
            total_minutes = 0
            if s.started_at is not None and s.ended_at is not None:
                total_minutes = round((s.ended_at - s.started_at) / 60)

            steps_completed = s.current_step_index
            if s.status is SessionStatus.STOPPED:
                # the step in progress when stopped did not finish
                steps_completed = max(0, s.current_step_index - 1)

            out.append({
                "id": s.id,
                "recipeName": s.recipe_name,
                "status": s.status.value,
                "startTime": _iso(s.started_at),
                "endTime": _iso(s.ended_at),
                "totalTime": total_minutes,
                "stepsCompleted": steps_completed,
            })
        return out
