"""
JSONL event logger.

Every record is one JSON object on one stdout line:
- event_type is UPPER_SNAKE and supplied by the caller
- ts_ms is wall-clock milliseconds, stamped here unless the caller set it
- Written and flushed immediately; no buffering, no levels, no handlers
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Output sink (tests monkeypatch this)
# ------------------------------------------------------------------

def _write_stdout(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _write_stdout


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def log_event(event: Mapping[str, Any]) -> None:
    """
    Emit one structured log record.

    Values json cannot encode (enums, datetimes) are written with
    str(). Never raises: this runs inside scheduler callbacks.
    """
    record = dict(event)
    record.setdefault("ts_ms", now_ms())

    try:
        line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError) as e:
        # e.g. non-string dict keys
        line = json.dumps(
            {
                "ts_ms": record.get("ts_ms"),
                "event_type": "LOGGER_SERIALIZATION_ERROR",
                "error": str(e),
                "original_event_repr": repr(event),
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )

    _print(line)
