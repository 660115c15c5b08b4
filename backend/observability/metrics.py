"""
Run-duration metrics.

A "run" is anything with a start and an end that the kitchen wants timed:
a cooking session, an oven preheat, a pressure cycle, a shutdown.

- Durations come from the monotonic clock; ts_ms on the emitted event is wall time
- One finished run = one METRIC_TIMER log line, nothing is aggregated in-process
- Runs that straddle scheduler callbacks use start_timer() / stop_timer();
  a run inside one synchronous block uses timed()
- A run torn down before it finishes is dropped with discard_timer()
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from observability.logger import log_event, now_ms


@dataclass(frozen=True)
class _Run:
    metric: str
    started_ns: int


# timer_id -> run still in flight
_open_runs: dict[str, _Run] = {}


def start_timer(name: str) -> str:
    """
    Open a run for metric `name`.

    Returns:
        Opaque timer id; hand it to stop_timer() or discard_timer().
    """
    timer_id = f"timer_{uuid.uuid4().hex[:12]}"
    _open_runs[timer_id] = _Run(metric=name, started_ns=time.monotonic_ns())
    return timer_id


def stop_timer(
    timer_id: str,
    *,
    entity_id: str | None = None,
    outcome: str | None = None,
    details: dict[str, Any] | None = None,
) -> int | None:
    """
    Close a run and log its duration.

    Args:
        timer_id: ID returned by start_timer()
        entity_id: Session or appliance the run belonged to
        outcome: How the run ended (completed, stopped, ready, ...)
        details: Extra structured context

    Returns:
        Elapsed milliseconds, or None for an unknown / already closed id.
    """
    run = _open_runs.pop(timer_id, None)
    if run is None:
        return None

    elapsed_ms = (time.monotonic_ns() - run.started_ns) // 1_000_000

    log_event({
        "ts_ms": now_ms(),
        "event_type": "METRIC_TIMER",
        "metric": run.metric,
        "value_ms": elapsed_ms,
        "entity_id": entity_id,
        "outcome": outcome,
        "details": details or {},
    })
    return elapsed_ms


def discard_timer(timer_id: str) -> None:
    """Drop an open run without logging it."""
    _open_runs.pop(timer_id, None)


@contextmanager
def timed(
    name: str,
    *,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Time the enclosed block.

    The metric is logged exactly once, also when the block raises.
    """
    timer_id = start_timer(name)
    try:
        yield
    finally:
        stop_timer(timer_id, entity_id=entity_id, details=details)
