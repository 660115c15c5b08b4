# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from typing import Any

import pytest

import kitchen.broadcaster as broadcaster_mod
from kitchen.broadcaster import Observer, UpdateBroadcaster
from kitchen.errors import TransientDeliveryError
from kitchen.events import BroadcastEvent, BroadcastType


def make_broadcaster(max_queue_depth: int = 8) -> UpdateBroadcaster:
    return UpdateBroadcaster(max_queue_depth=max_queue_depth, clock_ms=lambda: 0)


# ---------------------------------------------------------------------
# Wire shape
# ---------------------------------------------------------------------

def test_event_wire_shape():
    event = BroadcastEvent(
        type=BroadcastType.TIMER_UPDATE,
        data={"sessionId": "s1", "timeRemaining": 30},
        ts_ms=1_700_000_000_000,
    )

    assert event.session_id == "s1"
    assert event.to_wire() == {
        "type": "timer_update",
        "data": {"sessionId": "s1", "timeRemaining": 30},
        "timestamp": "2023-11-14T22:13:20Z",
    }


# ---------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------

def test_every_observer_receives_events_in_publish_order():
    b = make_broadcaster()
    first, second = b.subscribe(), b.subscribe()

    for n in range(3):
        b.broadcast(BroadcastType.TEST_MESSAGE, {"n": n})

    for observer in (first, second):
        assert [m["data"]["n"] for m in observer.drain()] == [0, 1, 2]


def test_full_observer_is_dropped_without_affecting_others(monkeypatch: pytest.MonkeyPatch):
    logged: list[dict[str, Any]] = []
    monkeypatch.setattr(broadcaster_mod, "log_event", logged.append)

    b = make_broadcaster(max_queue_depth=2)
    slow = b.subscribe()
    fast = b.subscribe()

    for n in range(3):
        b.broadcast(BroadcastType.TEST_MESSAGE, {"n": n})
        fast.drain()

    assert b.observer_count == 1
    assert slow.closed
    assert not fast.closed
    assert any(
        e["event_type"] == "OBSERVER_DELIVERY_FAILED" and e["observer_id"] == slow.observer_id
        for e in logged
    )


def test_publish_returns_delivered_count():
    b = make_broadcaster()
    b.subscribe()
    b.subscribe()

    event = b.event(BroadcastType.TEST_MESSAGE, {})
    assert b.publish(event) == 2


def test_unsubscribe_is_idempotent_and_closes_observer():
    b = make_broadcaster()
    observer = b.subscribe()

    b.unsubscribe(observer)
    b.unsubscribe(observer)

    assert b.observer_count == 0
    assert observer.closed
    assert b.publish(b.event(BroadcastType.TEST_MESSAGE, {})) == 0


def test_close_all_wakes_consumers():
    b = make_broadcaster()
    observer = b.subscribe()
    b.broadcast(BroadcastType.TEST_MESSAGE, {"n": 1})

    b.close_all()

    assert b.observer_count == 0
    assert asyncio.run(observer.next_message()) is None


# ---------------------------------------------------------------------
# Observer mailbox
# ---------------------------------------------------------------------

def test_observer_deliver_after_close_raises():
    observer = Observer("obs_x", max_depth=1)
    observer.close()

    with pytest.raises(TransientDeliveryError):
        observer.deliver({"type": "test_message"})


def test_observer_next_message_returns_queued_message():
    observer = Observer("obs_x", max_depth=2)
    observer.deliver({"type": "a"})

    assert observer.depth() == 1
    assert asyncio.run(observer.next_message()) == {"type": "a"}
    assert observer.delivered == 1


def test_observer_rejects_non_positive_depth():
    with pytest.raises(ValueError):
        Observer("obs_x", max_depth=0)
