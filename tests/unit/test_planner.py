# pylint: disable=missing-module-docstring,missing-function-docstring

import math

import pytest

from constants import FALLBACK_COOK_INSTRUCTION, FALLBACK_PREP_INSTRUCTION
from kitchen.errors import ValidationError
from kitchen.planner import (
    convert_temperature,
    estimate_minutes,
    plan,
    simulation_steps,
    single_step,
    split_instructions,
    steps_from_payload,
)


# ---------------------------------------------------------------------
# Free-text planning
# ---------------------------------------------------------------------

def test_rice_recipe_splits_into_two_equal_steps():
    steps = plan("Add rice and water. Cook on high pressure for 18 minutes.", 25)

    assert [s.instruction for s in steps] == [
        "Add rice and water",
        "Cook on high pressure for 18 minutes",
    ]
    assert [s.duration_minutes for s in steps] == [12, 12]
    assert [s.index for s in steps] == [1, 2]


@pytest.mark.parametrize(
    "instructions,total",
    [
        ("Chop. Fry. Serve!", 30),
        ("Boil water! Add pasta. Drain. Toss with sauce.", 17),
        ("One long step", 45),
    ],
)
def test_step_count_matches_fragments_and_sum_stays_within_rounding(instructions: str, total: int):
    fragments = split_instructions(instructions)
    steps = plan(instructions, total)

    assert len(steps) == len(fragments)
    assert all(s.duration_minutes >= 1 for s in steps)
    assert total - len(steps) < sum(s.duration_minutes for s in steps) <= total


@pytest.mark.parametrize("instructions", ["", "   ", ". ! .", "\n\t"])
def test_blank_instructions_fall_back_to_two_step_plan(instructions: str):
    steps = plan(instructions, 25)

    assert [(s.index, s.instruction, s.duration_minutes) for s in steps] == [
        (1, FALLBACK_PREP_INSTRUCTION, 5),
        (2, FALLBACK_COOK_INSTRUCTION, 20),
    ]


def test_fallback_cook_step_floors_at_one_minute():
    steps = plan("", 3)
    assert steps[1].duration_minutes == 1


@pytest.mark.parametrize("minutes", [0, -10])
def test_non_positive_estimate_still_yields_one_minute_steps(minutes: int):
    steps = plan("Stir. Simmer.", minutes)

    assert len(steps) == 2
    assert all(s.duration_minutes == 1 for s in steps)


# ---------------------------------------------------------------------
# Fixed plans
# ---------------------------------------------------------------------

def test_simulation_plan_shape():
    steps = simulation_steps("Chili", 20)

    assert len(steps) == 5
    assert steps[1].instruction == "Adding ingredients for Chili"
    assert [s.duration_minutes for s in steps] == [2, 1, 15, 2, 0]


def test_simulation_plan_pressure_step_has_floor():
    steps = simulation_steps("Eggs", 6)
    assert steps[2].duration_minutes == 5


def test_single_step_rejects_non_positive_minutes():
    with pytest.raises(ValidationError):
        single_step("Timer running", 0)
    with pytest.raises(ValidationError):
        single_step("Timer running", math.inf)

    (step,) = single_step("Timer running", 0.5)
    assert step.duration_seconds == 30


# ---------------------------------------------------------------------
# Explicit step payloads
# ---------------------------------------------------------------------

def test_steps_from_payload_accepts_zero_durations():
    steps = steps_from_payload([
        {"instruction": "Stir", "duration": 2},
        {"instruction": "Serve", "duration": 0},
    ])

    assert [(s.index, s.instruction, s.duration_minutes) for s in steps] == [
        (1, "Stir", 2),
        (2, "Serve", 0),
    ]


@pytest.mark.parametrize(
    "raw",
    [
        None,
        [],
        ["not an object"],
        [{"instruction": "", "duration": 1}],
        [{"instruction": "Stir", "duration": -1}],
        [{"instruction": "Stir", "duration": "ten"}],
        [{"instruction": "Stir", "duration": True}],
        [{"instruction": "Stir", "duration": math.inf}],
        [{"instruction": "Stir", "duration": math.nan}],
    ],
)
def test_steps_from_payload_rejects_bad_input(raw):
    with pytest.raises(ValidationError):
        steps_from_payload(raw)


# ---------------------------------------------------------------------
# Estimation helpers
# ---------------------------------------------------------------------

def test_estimate_minutes_from_ingredients_and_method():
    assert estimate_minutes([]) == 15
    assert estimate_minutes(["Chicken thighs", "Rice", "Mixed vegetables"]) == 50
    assert estimate_minutes(["chicken"], "pressure") == 21
    assert estimate_minutes(["pasta"], "unknown") == 25


def test_convert_temperature():
    assert convert_temperature(100, "C", "F") == pytest.approx(212)
    assert convert_temperature(212, "f", "c") == pytest.approx(100)
    assert convert_temperature(180, "C", "C") == 180

    with pytest.raises(ValidationError):
        convert_temperature(300, "K", "C")
