"""
Cooking session data model.

Rules:
- Pure data: frozen dataclasses, no behavior beyond derived read-only views.
- Sessions are replaced wholesale (dataclasses.replace) by the reducer.
- The store owns the authoritative copy of each session.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from constants import SECONDS_PER_MINUTE
from kitchen.enums.session_status import SessionStatus


@dataclass(frozen=True)
class CookingStep:
    """One unit of cooking work. Immutable once planned."""

    index: int  # 1-based
    instruction: str
    duration_minutes: float

    @property
    def duration_seconds(self) -> int:
        return max(0, round(self.duration_minutes * SECONDS_PER_MINUTE))

    def to_dict(self) -> dict[str, object]:
        return {
            "step": self.index,
            "instruction": self.instruction,
            "duration": self.duration_minutes,
        }


@dataclass(frozen=True)
class CookingSession:
    """
    Immutable snapshot of one simulated cooking run.

    current_step_index:
        0 before start, i while step i is active, len(steps) once completed.
    time_remaining_s:
        Seconds left in the active step; 0 once terminal.
    """

    id: str
    recipe_name: str
    steps: tuple[CookingStep, ...]
    current_step_index: int = 0
    status: SessionStatus = SessionStatus.STARTING
    time_remaining_s: int = 0
    device_id: str | None = None
    created_at: float = field(default_factory=time.time)
    started_at: float | None = None
    ended_at: float | None = None

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def active_step(self) -> CookingStep | None:
        if 1 <= self.current_step_index <= len(self.steps) and not self.status.is_terminal:
            return self.steps[self.current_step_index - 1]
        return None

    @property
    def total_minutes(self) -> float:
        return sum(s.duration_minutes for s in self.steps)
