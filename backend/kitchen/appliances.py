"""
Appliance simulator.

Responsibilities:
- Own the state of every simulated appliance (separate from sessions)
- Run the oven preheat ramp and the pressure-cooker cycle on timers
- Broadcast appliance transitions through the shared broadcaster
- Device discovery and connectivity self-test

Rules:
- Inputs are validated before any state mutation or timer
- Measurements move toward their target in fixed steps and never overshoot
- One running cycle per appliance; a new request replaces the old cycle
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from constants import (
    COOKER_DEPRESSURIZE_S,
    COOKER_MAX_PSI,
    COOKER_MIN_DURATION_MINUTES,
    COOKER_MIN_PSI,
    COOKER_OVERHEAD_MINUTES,
    COOKER_PSI_STEP,
    COOKER_TICK_S,
    OVEN_DEFAULT_MODE,
    OVEN_MAX_TEMP_C,
    OVEN_MIN_TEMP_C,
    OVEN_TEMP_STEP_C,
    OVEN_TICK_S,
    ROOM_TEMP_C,
    SECONDS_PER_MINUTE,
)
from kitchen.broadcaster import UpdateBroadcaster
from kitchen.enums.appliance import ApplianceStatus, ApplianceType
from kitchen.errors import NotFoundError, ValidationError
from kitchen.events import BroadcastType
from kitchen.planner import convert_temperature
from kitchen.scheduler import Scheduler, TimerHandle
from observability.logger import log_event
from observability.metrics import discard_timer, start_timer, stop_timer

OVEN_ID = "oven_01"
AUTOCOOKER_ID = "autocooker_01"
SPEAKER_ID = "speaker_01"

_BUSY = {
    ApplianceStatus.PREHEATING,
    ApplianceStatus.PRESSURIZING,
    ApplianceStatus.PRESSURE_COOKING,
    ApplianceStatus.DEPRESSURIZING,
}


# ---------------------------------------------------------------------
# State
# ---------------------------------------------------------------------

@dataclass
class ApplianceState:
    """Mutable appliance record, owned and mutated only by the simulator."""

    id: str
    name: str
    type: ApplianceType
    brand: str
    status: ApplianceStatus = ApplianceStatus.IDLE
    current: float = 0.0
    target: float = 0.0
    unit: str = ""
    mode: str | None = None
    cook_minutes: float = 0.0
    is_connected: bool = True
    features: tuple[str, ...] = ()
    last_update: float = field(default_factory=time.time)

    @property
    def busy(self) -> bool:
        return self.status in _BUSY

    def summary(self) -> dict[str, Any]:
        """Discovery shape."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "brand": self.brand,
            "status": self.status.value,
            "isConnected": self.is_connected,
            "features": list(self.features),
        }

    def to_dict(self) -> dict[str, Any]:
        """Full state shape."""
        out = self.summary()
        out.update({
            "currentMeasurement": self.current,
            "targetMeasurement": self.target,
            "unit": self.unit,
            "mode": self.mode,
            "lastUpdate": _iso(self.last_update),
        })
        return out


def _iso(epoch_s: float) -> str:
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def default_appliances() -> dict[str, ApplianceState]:
    """The simulated kitchen: one autocooker, one oven, one speaker."""
    return {
        AUTOCOOKER_ID: ApplianceState(
            id=AUTOCOOKER_ID,
            name="Smart Pressure Cooker",
            type=ApplianceType.AUTOCOOKER,
            brand="Instant Pot",
            unit="psi",
            features=("pressure_cook", "rice", "soup", "timer"),
        ),
        OVEN_ID: ApplianceState(
            id=OVEN_ID,
            name="Smart Oven",
            type=ApplianceType.OVEN,
            brand="Samsung",
            current=ROOM_TEMP_C,
            unit="celsius",
            mode="off",
            features=("bake", "broil", "convection", "preheat"),
        ),
        SPEAKER_ID: ApplianceState(
            id=SPEAKER_ID,
            name="Virtual Kitchen Speaker",
            type=ApplianceType.SPEAKER,
            brand="Google",
            status=ApplianceStatus.ONLINE,
            features=("announce",),
        ),
    }


def _require_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite")
    return float(value)


def _step_toward(current: float, target: float, step: float) -> float:
    """One fixed increment toward target, clamped so it never overshoots."""
    if current < target:
        return min(current + step, target)
    if current > target:
        return max(current - step, target)
    return current


# ---------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------

class ApplianceSimulator:
    """
    Timed state machines for the oven and the pressure cooker.

    Oven:    idle/ready -> preheating -> ready            (oven_preheated)
    Cooker:  idle/ready -> pressurizing -> pressure_cooking
                        -> depressurizing -> ready        (pressure_cooking_complete)
    """

    def __init__(
        self,
        *,
        broadcaster: UpdateBroadcaster,
        scheduler: Scheduler,
        appliances: dict[str, ApplianceState] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._broadcaster = broadcaster
        self._scheduler = scheduler
        self._clock = clock
        self._appliances = appliances if appliances is not None else default_appliances()

        self._timers: dict[str, TimerHandle] = {}
        self._metric_timers: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, appliance_id: str) -> ApplianceState:
        appliance = self._appliances.get(appliance_id)
        if appliance is None:
            raise NotFoundError(f"Appliance not found: {appliance_id}")
        return appliance

    def discover(self) -> list[dict[str, Any]]:
        return [a.summary() for a in self._appliances.values()]

    def self_test(self) -> dict[str, Any]:
        results: dict[str, Any] = {}
        for appliance in self._appliances.values():
            results[appliance.id] = {
                "name": appliance.name,
                "connected": appliance.is_connected,
                "status": appliance.status.value,
                "lastUpdate": _iso(appliance.last_update),
                "testPassed": appliance.is_connected
                and appliance.status is not ApplianceStatus.ERROR,
            }

        all_passed = all(r["testPassed"] for r in results.values())
        return {
            "success": all_passed,
            "message": "All appliances passed tests" if all_passed
            else "Some appliances failed tests",
            "results": results,
        }

    @property
    def active_cycle_count(self) -> int:
        return len(self._timers)

    # ------------------------------------------------------------------
    # Oven
    # ------------------------------------------------------------------

    def preheat(
        self,
        temperature: Any,
        mode: Any = OVEN_DEFAULT_MODE,
        unit: str = "C",
    ) -> dict[str, Any]:
        """
        Start the oven preheat ramp.

        Raises:
            ValidationError for a missing / out-of-range temperature or
            an empty mode. The oven is untouched in that case.
        """
        target = convert_temperature(_require_number(temperature, "temperature"), unit, "C")
        if not OVEN_MIN_TEMP_C <= target <= OVEN_MAX_TEMP_C:
            raise ValidationError(
                f"Invalid temperature ({OVEN_MIN_TEMP_C:g}-{OVEN_MAX_TEMP_C:g}°C)"
            )
        if not isinstance(mode, str) or not mode.strip():
            raise ValidationError("mode must be a non-empty string")

        oven = self.get(OVEN_ID)
        self._cancel_cycle(OVEN_ID)

        oven.target = target
        oven.mode = mode.strip()
        self._set_status(oven, ApplianceStatus.PREHEATING)

        self._metric_timers[OVEN_ID] = start_timer("oven_preheat_duration")
        self._arm(OVEN_ID, OVEN_TICK_S, self._oven_tick)

        steps_needed = abs(target - oven.current) / OVEN_TEMP_STEP_C
        estimated_minutes = round(steps_needed * OVEN_TICK_S / SECONDS_PER_MINUTE)

        return {
            "message": f"Oven preheating to {target:g}°C in {oven.mode} mode",
            "estimatedTime": estimated_minutes,
            "appliance": oven.to_dict(),
        }

    def _oven_tick(self) -> None:
        oven = self.get(OVEN_ID)
        oven.current = _step_toward(oven.current, oven.target, OVEN_TEMP_STEP_C)
        oven.last_update = self._clock()

        if oven.current != oven.target:
            self._arm(OVEN_ID, OVEN_TICK_S, self._oven_tick)
            return

        self._set_status(oven, ApplianceStatus.READY)
        self._finish_metric(OVEN_ID)
        self._broadcaster.broadcast(
            BroadcastType.OVEN_PREHEATED,
            {
                "applianceId": oven.id,
                "temperature": oven.current,
                "mode": oven.mode,
            },
        )

    # ------------------------------------------------------------------
    # Pressure cooker
    # ------------------------------------------------------------------

    def pressure_cook(self, pressure: Any, duration: Any) -> dict[str, Any]:
        """
        Start a pressurize -> cook -> depressurize cycle.

        Raises:
            ValidationError for pressure outside the PSI range or a
            duration under one minute. The cooker is untouched.
        """
        target = _require_number(pressure, "pressure")
        if not COOKER_MIN_PSI <= target <= COOKER_MAX_PSI:
            raise ValidationError(
                f"Invalid pressure ({COOKER_MIN_PSI:g}-{COOKER_MAX_PSI:g} PSI)"
            )
        minutes = _require_number(duration, "duration")
        if minutes < COOKER_MIN_DURATION_MINUTES:
            raise ValidationError(
                f"Invalid duration (minimum {COOKER_MIN_DURATION_MINUTES} minute)"
            )

        cooker = self.get(AUTOCOOKER_ID)
        self._cancel_cycle(AUTOCOOKER_ID)

        cooker.current = 0.0
        cooker.target = target
        cooker.cook_minutes = minutes
        self._set_status(cooker, ApplianceStatus.PRESSURIZING)

        self._metric_timers[AUTOCOOKER_ID] = start_timer("pressure_cycle_duration")
        self._arm(AUTOCOOKER_ID, COOKER_TICK_S, self._cooker_tick)

        return {
            "message": f"Pressure cooking at {target:g} PSI for {minutes:g} minutes",
            "totalTime": minutes + COOKER_OVERHEAD_MINUTES,
            "appliance": cooker.to_dict(),
        }

    def _cooker_tick(self) -> None:
        cooker = self.get(AUTOCOOKER_ID)
        cooker.current = _step_toward(cooker.current, cooker.target, COOKER_PSI_STEP)
        cooker.last_update = self._clock()

        if cooker.current < cooker.target:
            self._arm(AUTOCOOKER_ID, COOKER_TICK_S, self._cooker_tick)
            return

        self._set_status(cooker, ApplianceStatus.PRESSURE_COOKING)
        self._arm(
            AUTOCOOKER_ID,
            cooker.cook_minutes * SECONDS_PER_MINUTE,
            self._cooker_release,
        )

    def _cooker_release(self) -> None:
        cooker = self.get(AUTOCOOKER_ID)
        self._set_status(cooker, ApplianceStatus.DEPRESSURIZING)
        self._arm(AUTOCOOKER_ID, COOKER_DEPRESSURIZE_S, self._cooker_done)

    def _cooker_done(self) -> None:
        cooker = self.get(AUTOCOOKER_ID)
        cooker.current = 0.0
        cooker.target = 0.0
        self._set_status(cooker, ApplianceStatus.READY)
        self._finish_metric(AUTOCOOKER_ID)
        self._broadcaster.broadcast(
            BroadcastType.PRESSURE_COOKING_COMPLETE,
            {
                "applianceId": cooker.id,
                "message": "Pressure cooking complete and depressurized",
            },
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Cancel every running cycle (process teardown)."""
        cancelled = len(self._timers)
        for appliance_id in list(self._timers):
            self._cancel_cycle(appliance_id)

        log_event({
            "event_type": "APPLIANCE_SIMULATOR_SHUTDOWN",
            "cancelled_cycles": cancelled,
        })

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_status(self, appliance: ApplianceState, status: ApplianceStatus) -> None:
        previous = appliance.status
        appliance.status = status
        appliance.last_update = self._clock()

        log_event({
            "event_type": "APPLIANCE_STATUS_CHANGED",
            "appliance_id": appliance.id,
            "from": previous.value,
            "to": status.value,
            "current": appliance.current,
            "target": appliance.target,
        })
        self._broadcaster.broadcast(
            BroadcastType.DEVICE_STATUS,
            {
                "deviceId": appliance.id,
                "deviceName": appliance.name,
                "status": status.value,
            },
        )

    def _arm(self, appliance_id: str, delay_s: float, step: Callable[[], None]) -> None:
        """Start or replace the single cycle timer of an appliance."""
        handle = self._timers.pop(appliance_id, None)
        if handle is not None:
            handle.cancel()

        def _fire() -> None:
            self._timers.pop(appliance_id, None)
            try:
                step()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "APPLIANCE_TICK_FAILED",
                    "appliance_id": appliance_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
                self._arm(appliance_id, delay_s, step)

        self._timers[appliance_id] = self._scheduler.after(delay_s, _fire)

    def _cancel_cycle(self, appliance_id: str) -> None:
        handle = self._timers.pop(appliance_id, None)
        if handle is not None:
            handle.cancel()
            log_event({
                "event_type": "APPLIANCE_CYCLE_CANCELLED",
                "appliance_id": appliance_id,
            })

        timer_id = self._metric_timers.pop(appliance_id, None)
        if timer_id is not None:
            discard_timer(timer_id)

    def _finish_metric(self, appliance_id: str) -> None:
        timer_id = self._metric_timers.pop(appliance_id, None)
        if timer_id is not None:
            stop_timer(timer_id, entity_id=appliance_id, outcome="ready")
