"""
Broadcast event definitions for the push channel.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior beyond wire serialization).
- Events are write-once and never persisted, only transmitted.
- Payload keys are camelCase: they go straight to mobile clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# =============================================================================
# Event Type Enumeration
# =============================================================================

class BroadcastType(str, Enum):
    """
    Canonical server -> observer message types.
    """

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------
    CONNECTION_ESTABLISHED = "connection_established"

    # ------------------------------------------------------------------
    # Cooking sessions
    # ------------------------------------------------------------------
    COOKING_STEP_START = "cooking_step_start"
    TIMER_UPDATE = "timer_update"
    COOKING_STEP_COMPLETE = "cooking_step_complete"
    COOKING_COMPLETE = "cooking_complete"
    COOKING_STOPPED = "cooking_stopped"

    # ------------------------------------------------------------------
    # Appliances
    # ------------------------------------------------------------------
    OVEN_PREHEATED = "oven_preheated"
    PRESSURE_COOKING_COMPLETE = "pressure_cooking_complete"
    DEVICE_STATUS = "device_status"

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    TEST_MESSAGE = "test_message"
    ANDROID_TEST = "android_test"


# =============================================================================
# Event
# =============================================================================

@dataclass(frozen=True)
class BroadcastEvent:
    """
    One push message.

    ts_ms is supplied by the producer so pure transition code never
    reads a clock.
    """

    type: BroadcastType
    data: dict[str, Any] = field(default_factory=lambda: {})
    ts_ms: int = 0

    @property
    def session_id(self) -> str | None:
        return self.data.get("sessionId")

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the `{type, data, timestamp}` observer message shape."""
        timestamp = datetime.fromtimestamp(self.ts_ms / 1000.0, tz=timezone.utc)
        return {
            "type": self.type.value,
            "data": dict(self.data),
            "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
        }
