"""
Timer scheduling abstraction.

Responsibilities:
- after(delay_s, callback) -> cancellable handle
- now() for elapsed-time bookkeeping

Implementations:
- AsyncioScheduler: event loop call_later (server runtime)
- SimulatedScheduler: virtual clock advanced by hand (tests, dry runs)

Non-responsibilities:
- No knowledge of sessions or appliances
- No exception handling: callers wrap their own callbacks
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Protocol, runtime_checkable

Callback = Callable[[], None]


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    def after(self, delay_s: float, callback: Callback) -> TimerHandle: ...
    def now(self) -> float: ...


# ---------------------------------------------------------------------
# Event loop scheduler
# ---------------------------------------------------------------------

class AsyncioScheduler:
    """
    Scheduler backed by the running asyncio event loop.

    The loop is resolved lazily so the scheduler can be constructed
    in the app factory before uvicorn starts the loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def after(self, delay_s: float, callback: Callback) -> TimerHandle:
        return self._resolve_loop().call_later(delay_s, callback)

    def now(self) -> float:
        return self._resolve_loop().time()


# ---------------------------------------------------------------------
# Virtual clock scheduler
# ---------------------------------------------------------------------

class _SimulatedTimer:
    __slots__ = ("due", "callback", "cancelled")

    def __init__(self, due: float, callback: Callback) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class SimulatedScheduler:
    """
    Deterministic scheduler driven by advance().

    Callbacks fire in (due time, scheduling order). Callbacks may schedule
    new timers; those fire within the same advance() if they fall due.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, _SimulatedTimer]] = []

    def after(self, delay_s: float, callback: Callback) -> TimerHandle:
        timer = _SimulatedTimer(self._now + max(0.0, delay_s), callback)
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        return timer

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> int:
        """
        Move the virtual clock forward, firing every timer that falls due.

        Returns:
            Number of callbacks executed.
        """
        target = self._now + seconds
        fired = 0

        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            self._now = due
            timer.callback()
            fired += 1

        self._now = target
        return fired

    def pending(self) -> int:
        """Number of live (uncancelled) timers."""
        return sum(1 for _, _, t in self._heap if not t.cancelled)
