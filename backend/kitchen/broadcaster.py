"""
Push-channel fan-out.

Responsibilities:
- Registry of connected observers
- Isolated, bounded, per-observer FIFO delivery
- Removal of observers whose delivery fails

Delivery rules:
- publish() never awaits and never raises
- A closed or backed-up observer is dropped (TransientDeliveryError)
- Per-observer order equals publish order
- No ordering guarantee across observers, no acks, no retries
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Callable

from constants import OBSERVER_QUEUE_MAX
from kitchen.errors import TransientDeliveryError
from kitchen.events import BroadcastEvent, BroadcastType
from observability.logger import log_event, now_ms


# ---------------------------------------------------------------------
# Observer
# ---------------------------------------------------------------------

class Observer:
    """
    One connected party's outbound mailbox.

    The transport (WebSocket sender task) consumes messages with
    next_message(); the broadcaster only ever calls deliver().
    """

    def __init__(self, observer_id: str, *, max_depth: int = OBSERVER_QUEUE_MAX) -> None:
        if max_depth <= 0:
            raise ValueError("max_depth must be > 0")

        self.observer_id = observer_id
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=max_depth)
        self._closed = False
        self.delivered = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, message: dict[str, Any]) -> None:
        """
        Enqueue a wire message without blocking.

        Raises:
            TransientDeliveryError if the observer is closed or its
            mailbox is full.
        """
        if self._closed:
            raise TransientDeliveryError(f"Observer {self.observer_id} is closed")
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull as exc:
            raise TransientDeliveryError(
                f"Observer {self.observer_id} mailbox full"
            ) from exc
        self.delivered += 1

    async def next_message(self) -> dict[str, Any] | None:
        """
        Wait for the next message.

        Returns:
            The next wire message, or None once the observer is closed.
        """
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def drain(self) -> list[dict[str, Any]]:
        """Pop every pending message without waiting (FIFO order)."""
        out: list[dict[str, Any]] = []
        while True:
            try:
                msg = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return out
            if msg is not None:
                out.append(msg)

    def close(self) -> None:
        """
        Mark closed and wake any waiting consumer.

        Pending messages are discarded.
        """
        if self._closed:
            return
        self._closed = True
        self.drain()
        self._queue.put_nowait(None)

    def depth(self) -> int:
        return self._queue.qsize()


# ---------------------------------------------------------------------
# Broadcaster
# ---------------------------------------------------------------------

class UpdateBroadcaster:
    """
    Fan-out channel for session and appliance lifecycle events.

    Single-threaded: all calls happen on the event loop (or a
    SimulatedScheduler in tests).
    """

    def __init__(
        self,
        *,
        max_queue_depth: int = OBSERVER_QUEUE_MAX,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self._max_queue_depth = max_queue_depth
        self._clock_ms = clock_ms
        self._observers: dict[str, Observer] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def subscribe(self) -> Observer:
        observer = Observer(
            f"obs_{next(self._ids)}",
            max_depth=self._max_queue_depth,
        )
        self._observers[observer.observer_id] = observer

        log_event({
            "event_type": "OBSERVER_SUBSCRIBED",
            "observer_id": observer.observer_id,
            "observers": len(self._observers),
        })
        return observer

    def unsubscribe(self, observer: Observer) -> None:
        """Idempotent."""
        removed = self._observers.pop(observer.observer_id, None)
        observer.close()
        if removed is not None:
            log_event({
                "event_type": "OBSERVER_UNSUBSCRIBED",
                "observer_id": observer.observer_id,
                "observers": len(self._observers),
            })

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def event(self, event_type: BroadcastType, data: dict[str, Any]) -> BroadcastEvent:
        """Build an event stamped with the broadcaster clock."""
        return BroadcastEvent(type=event_type, data=data, ts_ms=self._clock_ms())

    def publish(self, event: BroadcastEvent) -> int:
        """
        Deliver an event to every current observer.

        Returns:
            Number of observers that accepted the event.
        """
        message = event.to_wire()
        delivered = 0
        dropped: list[Observer] = []

        for observer in list(self._observers.values()):
            try:
                observer.deliver(message)
                delivered += 1
            except TransientDeliveryError as exc:
                log_event({
                    "event_type": "OBSERVER_DELIVERY_FAILED",
                    "observer_id": observer.observer_id,
                    "broadcast_type": event.type.value,
                    "error": exc.message,
                })
                dropped.append(observer)

        for observer in dropped:
            self.unsubscribe(observer)

        log_event({
            "ts_ms": event.ts_ms,
            "event_type": "BROADCAST",
            "broadcast_type": event.type.value,
            "session_id": event.session_id,
            "delivered": delivered,
            "dropped": len(dropped),
        })
        return delivered

    def broadcast(self, event_type: BroadcastType, data: dict[str, Any]) -> BroadcastEvent:
        """Stamp and publish in one call."""
        event = self.event(event_type, data)
        self.publish(event)
        return event

    def close_all(self) -> None:
        """Close every observer (process shutdown)."""
        for observer in list(self._observers.values()):
            self.unsubscribe(observer)
