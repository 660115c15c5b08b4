"""
Appliance type and status enumerations.
"""

from __future__ import annotations

from enum import Enum


class ApplianceType(str, Enum):
    AUTOCOOKER = "AUTOCOOKER"
    OVEN = "OVEN"
    SPEAKER = "SPEAKER"


class ApplianceStatus(str, Enum):
    """
    Union of the oven and pressure-cooker cycle states.

    Oven:    IDLE -> PREHEATING -> READY
    Cooker:  IDLE -> PRESSURIZING -> PRESSURE_COOKING
                   -> DEPRESSURIZING -> READY
    """

    IDLE = "idle"
    READY = "ready"
    ONLINE = "online"
    PREHEATING = "preheating"
    PRESSURIZING = "pressurizing"
    PRESSURE_COOKING = "pressure_cooking"
    DEPRESSURIZING = "depressurizing"
    ERROR = "error"
