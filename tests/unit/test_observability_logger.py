# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


def capture(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    return captured


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    captured = capture(monkeypatch)

    payload: dict[str, Any] = {
        "ts_ms": 1,
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    # Must be valid JSON, payload preserved exactly
    assert json.loads(captured[0]) == payload


def test_log_event_fills_timestamp_and_stringifies_unknown_values(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured = capture(monkeypatch)

    logger.log_event({"event_type": "TEST", "value": {1, 2} - {1, 2}})

    decoded = json.loads(captured[0])
    assert isinstance(decoded["ts_ms"], int)
    assert decoded["value"] == "set()"


def test_timed_emits_metric_once(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = capture(monkeypatch)

    with pytest.raises(RuntimeError):
        with metrics.timed("kitchen_shutdown", entity_id="ctx"):
            raise RuntimeError("boom")

    events = [json.loads(line) for line in captured]
    assert len(events) == 1
    assert events[0]["event_type"] == "METRIC_TIMER"
    assert events[0]["metric"] == "kitchen_shutdown"
    assert events[0]["entity_id"] == "ctx"
    assert events[0]["value_ms"] >= 0


def test_discarded_timer_never_emits(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = capture(monkeypatch)

    timer_id = metrics.start_timer("oven_preheat_duration")
    metrics.discard_timer(timer_id)

    assert metrics.stop_timer(timer_id) is None
    assert not captured
