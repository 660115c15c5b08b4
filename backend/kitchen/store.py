"""
In-memory session store.

Responsibilities:
- Own every CookingSession by value, keyed by id
- Provide atomic read-modify-write per session

Non-responsibilities:
- No timers
- No event emission
- No transition logic (the reducer decides, the clock applies)
"""

from __future__ import annotations

import threading
from typing import Callable

from kitchen.errors import DuplicateSessionError, NotFoundError, ValidationError
from kitchen.models import CookingSession, CookingStep

Mutator = Callable[[CookingSession], CookingSession]


class SessionStore:
    """
    Single source of truth for "which step is active and how much time remains".

    All access happens on the event loop in the server; the lock keeps
    update() atomic if a caller ever runs off-loop.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, CookingSession] = {}
        self._lock = threading.Lock()

    def create(
        self,
        session_id: str,
        recipe_name: str,
        steps: tuple[CookingStep, ...],
        *,
        device_id: str | None = None,
    ) -> CookingSession:
        """
        Register a new session in the STARTING state.

        Raises:
            ValidationError if steps is empty.
            DuplicateSessionError if session_id already exists.
        """
        if not steps:
            raise ValidationError("A cooking session needs at least one step")

        with self._lock:
            if session_id in self._sessions:
                raise DuplicateSessionError(f"Session already exists: {session_id}")

            session = CookingSession(
                id=session_id,
                recipe_name=recipe_name,
                steps=tuple(steps),
                device_id=device_id,
            )
            self._sessions[session_id] = session
            return session

    def get(self, session_id: str) -> CookingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        return session

    def update(self, session_id: str, mutator: Mutator) -> CookingSession:
        """
        Atomically replace a session with mutator(session).

        If the mutator raises, the stored session is left unchanged.
        """
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise NotFoundError(f"Session not found: {session_id}")
            updated = mutator(current)
            self._sessions[session_id] = updated
            return updated

    def remove(self, session_id: str) -> None:
        """Idempotent."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def list(self) -> list[CookingSession]:
        """Creation order."""
        return list(self._sessions.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
