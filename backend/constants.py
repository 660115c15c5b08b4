"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for all behavioral invariants of the kitchen simulator.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Cooking clock
# =============================================================================

TICK_INTERVAL_S: Final[float] = 1.0
TIMER_UPDATE_EVERY_S: Final[int] = 30
SECONDS_PER_MINUTE: Final[int] = 60

# =============================================================================
# Step planning
# =============================================================================

DEFAULT_ESTIMATED_MINUTES: Final[int] = 10
MIN_STEP_MINUTES: Final[int] = 1

# Sentence boundaries used to split free-text instructions
STEP_BREAK_CHARS: Final[Tuple[str, ...]] = (".", "!")

FALLBACK_PREP_INSTRUCTION: Final[str] = "Prepare ingredients"
FALLBACK_PREP_MINUTES: Final[int] = 5
FALLBACK_COOK_INSTRUCTION: Final[str] = "Cook according to recipe"

# Fixed autocooker simulation plan
SIM_PREHEAT_MINUTES: Final[int] = 2
SIM_ADD_INGREDIENTS_MINUTES: Final[int] = 1
SIM_PRESSURE_OVERHEAD_MINUTES: Final[int] = 5
SIM_PRESSURE_MIN_MINUTES: Final[int] = 5
SIM_RELEASE_MINUTES: Final[int] = 2

# Cooking time estimation
ESTIMATE_BASE_MINUTES: Final[int] = 15
ESTIMATE_MEAT_MINUTES: Final[int] = 20
ESTIMATE_STARCH_MINUTES: Final[int] = 10
ESTIMATE_VEGETABLE_MINUTES: Final[int] = 5
ESTIMATE_METHOD_FACTORS: Final[dict[str, float]] = {
    "pressure": 0.6,
    "slow": 4.0,
    "grill": 0.8,
}

# =============================================================================
# Status / history
# =============================================================================

COMPLETE_PLACEHOLDER: Final[str] = "Complete"
STOPPED_PLACEHOLDER: Final[str] = "Stopped"
IDLE_STATUS: Final[str] = "idle"
HISTORY_LIMIT: Final[int] = 20

# =============================================================================
# Oven
# =============================================================================

OVEN_MIN_TEMP_C: Final[float] = 50.0
OVEN_MAX_TEMP_C: Final[float] = 300.0
OVEN_TEMP_STEP_C: Final[float] = 10.0
OVEN_TICK_S: Final[float] = 2.0
OVEN_DEFAULT_MODE: Final[str] = "bake"
ROOM_TEMP_C: Final[float] = 20.0

# =============================================================================
# Pressure cooker
# =============================================================================

COOKER_MIN_PSI: Final[float] = 5.0
COOKER_MAX_PSI: Final[float] = 15.0
COOKER_PSI_STEP: Final[float] = 0.5
COOKER_TICK_S: Final[float] = 1.0
COOKER_MIN_DURATION_MINUTES: Final[int] = 1
COOKER_DEPRESSURIZE_S: Final[float] = 30.0
COOKER_OVERHEAD_MINUTES: Final[int] = 5

# =============================================================================
# Push channel
# =============================================================================

OBSERVER_QUEUE_MAX: Final[int] = 256
