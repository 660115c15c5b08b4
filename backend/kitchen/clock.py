"""
Cooking clock: timed execution shell for cooking sessions.

Responsibilities:
- Call the pure reducer on start / tick / stop
- Write the reducer's new session into the store
- Publish emitted events through the broadcaster
- Own exactly one countdown timer per cooking session
- Survive failing tick callbacks (log, skip, keep ticking)

Non-responsibilities:
- No transition logic (reducer)
- No session storage (store)
- No transport concerns (broadcaster observers)
"""

from __future__ import annotations

from typing import Callable

from constants import TICK_INTERVAL_S
from kitchen import reducer
from kitchen.broadcaster import UpdateBroadcaster
from kitchen.enums.session_status import SessionStatus
from kitchen.errors import NotFoundError
from kitchen.events import BroadcastEvent
from kitchen.models import CookingSession
from kitchen.scheduler import Scheduler, TimerHandle
from kitchen.store import SessionStore
from observability.logger import log_event, now_ms
from observability.metrics import discard_timer, start_timer, stop_timer

TransitionFn = Callable[[CookingSession, int], reducer.Transition]


class CookingClock:
    """
    Countdown engine for every cooking session in a store.

    Guarantees:
    - State is written to the store before its events are published
    - A session has at most one armed timer; arming replaces the old one
    - No tick runs for a session after stop() returns
    - A terminal session never re-arms
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        broadcaster: UpdateBroadcaster,
        scheduler: Scheduler,
        tick_interval_s: float = TICK_INTERVAL_S,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._broadcaster = broadcaster
        self._scheduler = scheduler
        self._tick_interval_s = tick_interval_s
        self._clock_ms = clock_ms

        self._timers: dict[str, TimerHandle] = {}
        self._metric_timers: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, session_id: str) -> CookingSession:
        """
        Begin step 1 of a STARTING session and arm its countdown.

        Raises:
            NotFoundError for an unknown id (nothing is emitted).
            ValidationError if the session was already started.
        """
        session, events = self._apply(session_id, reducer.begin)

        self._metric_timers[session_id] = start_timer("cooking_session_duration")
        log_event({
            "event_type": "COOKING_SESSION_STARTED",
            "session_id": session_id,
            "recipe_name": session.recipe_name,
            "total_steps": session.total_steps,
            "time_remaining_s": session.time_remaining_s,
        })

        self._publish(events)
        self._arm(session_id)
        return session

    def stop(self, session_id: str) -> CookingSession:
        """
        Operator-initiated early termination.

        Cancels the countdown first, then moves the session to STOPPED.
        Stopping an already-terminal session returns it unchanged.

        Raises:
            NotFoundError for an unknown id.
        """
        self._cancel_timer(session_id)
        session, events = self._apply(session_id, reducer.halt)

        if events:
            log_event({
                "event_type": "COOKING_SESSION_STOPPED",
                "session_id": session_id,
                "stopped_at_step": session.current_step_index,
            })
            self._finish_metric(session)
            self._publish(events)

        return session

    def shutdown(self) -> None:
        """Cancel every outstanding countdown (process teardown)."""
        cancelled = len(self._timers)
        for session_id in list(self._timers):
            self._cancel_timer(session_id)

        for timer_id in self._metric_timers.values():
            discard_timer(timer_id)
        self._metric_timers.clear()

        log_event({
            "event_type": "COOKING_CLOCK_SHUTDOWN",
            "cancelled_timers": cancelled,
        })

    def is_ticking(self, session_id: str) -> bool:
        return session_id in self._timers

    @property
    def active_timer_count(self) -> int:
        return len(self._timers)

    # ------------------------------------------------------------------
    # Tick handling
    # ------------------------------------------------------------------

    def _on_tick(self, session_id: str) -> None:
        """
        Timer callback. Must never raise into the scheduler.
        """
        # The handle that fired is spent
        self._timers.pop(session_id, None)

        try:
            session, events = self._apply(session_id, reducer.tick)
        except NotFoundError:
            log_event({
                "event_type": "COOKING_TICK_ORPHANED",
                "session_id": session_id,
            })
            return
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "COOKING_TICK_FAILED",
                "session_id": session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            self._arm(session_id)
            return

        self._publish(events)

        if session.status is SessionStatus.COOKING:
            self._arm(session_id)
        elif session.status is SessionStatus.COMPLETED:
            log_event({
                "event_type": "COOKING_SESSION_COMPLETED",
                "session_id": session_id,
                "recipe_name": session.recipe_name,
                "total_steps": session.total_steps,
            })
            self._finish_metric(session)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        session_id: str,
        transition: TransitionFn,
    ) -> reducer.Transition:
        """Run a reducer transition inside one atomic store update."""
        ts_ms = self._clock_ms()
        emitted: list[BroadcastEvent] = []

        def _mutate(current: CookingSession) -> CookingSession:
            new, events = transition(current, ts_ms)
            emitted.extend(events)
            return new

        session = self._store.update(session_id, _mutate)
        return session, tuple(emitted)

    def _publish(self, events: tuple[BroadcastEvent, ...]) -> None:
        for event in events:
            self._broadcaster.publish(event)

    def _arm(self, session_id: str) -> None:
        """Start or replace the countdown timer for a session."""
        self._cancel_timer(session_id)
        self._timers[session_id] = self._scheduler.after(
            self._tick_interval_s,
            lambda: self._on_tick(session_id),
        )

    def _cancel_timer(self, session_id: str) -> None:
        """Idempotent."""
        handle = self._timers.pop(session_id, None)
        if handle is not None:
            handle.cancel()

    def _finish_metric(self, session: CookingSession) -> None:
        timer_id = self._metric_timers.pop(session.id, None)
        if timer_id is not None:
            stop_timer(
                timer_id,
                entity_id=session.id,
                outcome=session.status.value,
                details={"recipe_name": session.recipe_name},
            )
