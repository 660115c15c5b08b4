"""
Kitchen process context.

- Owns every shared in-memory structure (sessions, appliances, observers)
- Constructed once at process start by the app factory
- Torn down once at process shutdown (FastAPI lifespan exit)
- Tests construct isolated instances over a SimulatedScheduler
"""

from __future__ import annotations

import time
from typing import Any, Callable, TYPE_CHECKING

from uuid import uuid4

from constants import OBSERVER_QUEUE_MAX, TICK_INTERVAL_S
from kitchen.appliances import ApplianceSimulator
from kitchen.broadcaster import UpdateBroadcaster
from kitchen.clock import CookingClock
from kitchen.models import CookingSession, CookingStep
from kitchen.scheduler import AsyncioScheduler, Scheduler
from kitchen.status import StatusQuery
from kitchen.store import SessionStore
from observability.logger import log_event, now_ms
from observability.metrics import timed

if TYPE_CHECKING:
    from config import AppConfig


def new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


class KitchenContext:
    """
    Process-wide container wiring the kitchen core together.

    Wiring order matters: the broadcaster exists before anything that
    publishes through it.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        tick_interval_s: float = TICK_INTERVAL_S,
        max_queue_depth: int = OBSERVER_QUEUE_MAX,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self.started_at = time.time()
        self.scheduler = scheduler

        self.store = SessionStore()
        self.broadcaster = UpdateBroadcaster(
            max_queue_depth=max_queue_depth,
            clock_ms=clock_ms,
        )
        self.clock = CookingClock(
            store=self.store,
            broadcaster=self.broadcaster,
            scheduler=scheduler,
            tick_interval_s=tick_interval_s,
            clock_ms=clock_ms,
        )
        self.appliances = ApplianceSimulator(
            broadcaster=self.broadcaster,
            scheduler=scheduler,
        )
        self.status = StatusQuery(self.store)
        self._closed = False

    @classmethod
    def from_config(cls, config: AppConfig) -> KitchenContext:
        return cls(
            scheduler=AsyncioScheduler(),
            tick_interval_s=config.tick_interval_s,
            max_queue_depth=config.observer_queue_max,
        )

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    def start_session(
        self,
        recipe_name: str,
        steps: tuple[CookingStep, ...],
        *,
        session_id: str | None = None,
        device_id: str | None = None,
    ) -> CookingSession:
        """
        Create a session and start its clock.

        A session whose clock fails to start is removed from the store
        before the error propagates.

        Raises:
            NotFoundError if device_id names no known appliance.
            DuplicateSessionError if session_id is taken.
            ValidationError if steps is empty.
        """
        if device_id is not None:
            self.appliances.get(device_id)

        sid = session_id or new_session_id()
        session = self.store.create(sid, recipe_name, steps, device_id=device_id)

        log_event({
            "event_type": "COOKING_SESSION_CREATED",
            "session_id": sid,
            "recipe_name": recipe_name,
            "device_id": device_id,
            "steps": [s.to_dict() for s in session.steps],
        })

        try:
            return self.clock.start(sid)
        except Exception as exc:
            self.store.remove(sid)
            log_event({
                "event_type": "COOKING_SESSION_START_FAILED",
                "session_id": sid,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            raise

    def stop_session(self, session_id: str) -> CookingSession:
        return self.clock.stop(session_id)

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def health(self) -> dict[str, Any]:
        return {
            "uptime": round(time.time() - self.started_at, 3),
            "appliances": len(self.appliances.discover()),
            "connectedClients": self.broadcaster.observer_count,
            "sessions": len(self.store),
            "activeTimers": self.clock.active_timer_count + self.appliances.active_cycle_count,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """
        Cancel all session and appliance timers, then close observers.

        Idempotent.
        """
        if self._closed:
            return
        self._closed = True

        with timed("kitchen_shutdown"):
            self.clock.shutdown()
            self.appliances.shutdown()
            self.broadcaster.close_all()
