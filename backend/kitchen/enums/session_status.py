"""
Cooking session status enumeration.

Rules:
- Values are the wire representation returned by status queries.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class SessionStatus(str, Enum):
    """
    Lifecycle of a single simulated cooking run.

    COMPLETED and STOPPED are both terminal. STOPPED marks an
    operator-initiated early termination.
    """

    STARTING = "starting"
    COOKING = "cooking"
    COMPLETED = "completed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.STOPPED)
