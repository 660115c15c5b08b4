"""
Step planning.

Pure functions: recipe text / explicit payloads -> ordered CookingSteps.

Rules:
- No clocks, no store, no timers.
- Every planned step has index >= 1 and duration >= 0.
- Free-text plans always produce durations >= MIN_STEP_MINUTES.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, Sequence

from constants import (
    ESTIMATE_BASE_MINUTES,
    ESTIMATE_MEAT_MINUTES,
    ESTIMATE_METHOD_FACTORS,
    ESTIMATE_STARCH_MINUTES,
    ESTIMATE_VEGETABLE_MINUTES,
    FALLBACK_COOK_INSTRUCTION,
    FALLBACK_PREP_INSTRUCTION,
    FALLBACK_PREP_MINUTES,
    MIN_STEP_MINUTES,
    SIM_ADD_INGREDIENTS_MINUTES,
    SIM_PREHEAT_MINUTES,
    SIM_PRESSURE_MIN_MINUTES,
    SIM_PRESSURE_OVERHEAD_MINUTES,
    SIM_RELEASE_MINUTES,
    STEP_BREAK_CHARS,
)
from kitchen.errors import ValidationError
from kitchen.models import CookingStep


_SPLIT_RE = re.compile("[" + re.escape("".join(STEP_BREAK_CHARS)) + "]")


# ---------------------------------------------------------------------
# Free-text planning
# ---------------------------------------------------------------------

def split_instructions(instructions: str) -> list[str]:
    """Split on sentence-ending punctuation, dropping blank fragments."""
    return [
        fragment.strip()
        for fragment in _SPLIT_RE.split(instructions or "")
        if fragment.strip()
    ]


def plan(instructions: str, estimated_minutes: int) -> tuple[CookingStep, ...]:
    """
    Derive an ordered step list from free-text instructions.

    Each non-empty fragment becomes one step of
    max(1, floor(estimated_minutes / fragment_count)) minutes.
    With no usable fragments, falls back to a fixed two-step plan.

    >>> [s.duration_minutes for s in plan("Add rice and water. Cook on high.", 25)]
    [12, 12]
    """
    fragments = split_instructions(instructions)

    if not fragments:
        return (
            CookingStep(1, FALLBACK_PREP_INSTRUCTION, FALLBACK_PREP_MINUTES),
            CookingStep(
                2,
                FALLBACK_COOK_INSTRUCTION,
                max(MIN_STEP_MINUTES, estimated_minutes - FALLBACK_PREP_MINUTES),
            ),
        )

    per_step = max(MIN_STEP_MINUTES, math.floor(estimated_minutes / len(fragments)))
    return tuple(
        CookingStep(i, fragment, per_step)
        for i, fragment in enumerate(fragments, start=1)
    )


def simulation_steps(recipe_name: str, estimated_minutes: int) -> tuple[CookingStep, ...]:
    """
    Fixed autocooker run used when a start request carries no instructions.

    The final zero-minute step completes on the first tick after it starts.
    """
    pressure_minutes = max(
        estimated_minutes - SIM_PRESSURE_OVERHEAD_MINUTES,
        SIM_PRESSURE_MIN_MINUTES,
    )
    return (
        CookingStep(1, "Preheating autocooker", SIM_PREHEAT_MINUTES),
        CookingStep(2, f"Adding ingredients for {recipe_name}", SIM_ADD_INGREDIENTS_MINUTES),
        CookingStep(3, "Pressure cooking", pressure_minutes),
        CookingStep(4, "Natural pressure release", SIM_RELEASE_MINUTES),
        CookingStep(5, "Cooking complete", 0),
    )


def single_step(instruction: str, minutes: float) -> tuple[CookingStep, ...]:
    """One-step plan (kitchen timers)."""
    if not math.isfinite(minutes) or minutes <= 0:
        raise ValidationError("Timer duration must be positive")
    return (CookingStep(1, instruction, minutes),)


# ---------------------------------------------------------------------
# Explicit step payloads
# ---------------------------------------------------------------------

def steps_from_payload(raw: Sequence[Any] | None) -> tuple[CookingStep, ...]:
    """
    Validate an explicit `[{instruction, duration}, ...]` list.

    Raises:
        ValidationError on an empty list, a missing instruction,
        or a duration that is not a finite number >= 0.
    """
    if not raw:
        raise ValidationError("Invalid or missing steps array")

    steps: list[CookingStep] = []
    for i, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Step {i} must be an object")

        instruction = str(item.get("instruction") or "").strip()
        if not instruction:
            raise ValidationError(f"Step {i} is missing an instruction")

        duration = item.get("duration", MIN_STEP_MINUTES)
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise ValidationError(f"Step {i} duration must be a number")
        if not math.isfinite(duration) or duration < 0:
            raise ValidationError(f"Step {i} duration must be a finite number >= 0")

        steps.append(CookingStep(i, instruction, duration))

    return tuple(steps)


# ---------------------------------------------------------------------
# Estimation helpers
# ---------------------------------------------------------------------

def estimate_minutes(ingredients: Iterable[str], method: str = "") -> int:
    """Rough cooking time from ingredient keywords and cooking method."""
    total: float = ESTIMATE_BASE_MINUTES

    for ingredient in ingredients:
        lowered = ingredient.lower()
        if "meat" in lowered or "chicken" in lowered:
            total += ESTIMATE_MEAT_MINUTES
        elif "rice" in lowered or "pasta" in lowered:
            total += ESTIMATE_STARCH_MINUTES
        elif "vegetable" in lowered:
            total += ESTIMATE_VEGETABLE_MINUTES

    total *= ESTIMATE_METHOD_FACTORS.get(method.lower(), 1.0)
    return round(total)


def convert_temperature(value: float, from_unit: str, to_unit: str) -> float:
    """Convert between Celsius ("C") and Fahrenheit ("F")."""
    src, dst = from_unit.upper(), to_unit.upper()
    if src == dst:
        return value
    if src == "C" and dst == "F":
        return value * 9 / 5 + 32
    if src == "F" and dst == "C":
        return (value - 32) * 5 / 9
    raise ValidationError(f"Unsupported temperature units: {from_unit} -> {to_unit}")
