"""Validation and scoring of AI-generated workout programs.

The generative-language service is called elsewhere; this module only reads
the JSON text it returns and turns it into workout plans.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..models import (
    AI_GENERATED_SOURCE,
    Exercise,
    ExerciseTips,
    WorkoutDataError,
    WorkoutPlan,
)

logger = logging.getLogger(__name__)

COMPOUND_KEYWORDS = [
    'squat', 'deadlift', 'bench', 'press', 'row', 'pull-up', 'pullup',
    'chin-up', 'chinup', 'dip', 'lunge', 'clean', 'snatch', 'thruster'
]

_CODE_FENCE = re.compile(r"```(?:json)?\n?")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_REP_RANGE = re.compile(r"(\d+)-(\d+)")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class GeneratedProgram:
    """Cleaned multi-day program returned by the AI service."""
    plans: Dict[str, WorkoutPlan]
    program_name: str = ""
    program_description: str = ""
    weekly_volume: str = ""


@dataclass
class PlanValidation:
    """Outcome of validating a generated program.

    `error` holds the failure reason when invalid, or the collected
    warnings when the program was accepted with some days dropped.
    """
    valid: bool
    error: Optional[str] = None
    cleaned: Optional[GeneratedProgram] = None


@dataclass
class PlanIntensity:
    score: int
    level: str
    breakdown: Dict[str, float] = field(default_factory=dict)


@dataclass
class FocusGuidance:
    """Rep range, rest and tips suited to a training focus."""
    rep_range: str
    rest_period: str
    description: str
    tips: List[str] = field(default_factory=list)


FOCUS_GUIDANCE = {
    "balanced": FocusGuidance(
        "8-12", "60-90 sec", "Mix of strength and muscle building",
        ["Include both compound and isolation exercises", "Vary rep ranges through the week"],
    ),
    "strength": FocusGuidance(
        "3-6", "2-3 min", "Heavy weights, lower reps, full recovery",
        ["Focus on progressive overload", "Prioritize compound movements", "Quality over quantity"],
    ),
    "hypertrophy": FocusGuidance(
        "8-15", "60-90 sec", "Moderate weight, higher volume for muscle growth",
        ["Focus on time under tension", "Include drop sets and supersets", "Ensure adequate protein intake"],
    ),
    "upper body": FocusGuidance(
        "8-12", "60-90 sec", "Chest, back, shoulders, and arms focus",
        ["Balance push and pull movements", "Don't neglect rear delts",
         "Include both horizontal and vertical pulling"],
    ),
    "lower body": FocusGuidance(
        "8-15", "90-120 sec", "Legs, glutes, and core focus",
        ["Start with compounds like squats", "Include unilateral work", "Don't skip calves and hamstrings"],
    ),
}


def focus_recommendations(focus: Optional[str]) -> FocusGuidance:
    """Training guidance for a focus; unknown focuses get the balanced defaults."""
    key = (focus or "").strip().lower()
    return FOCUS_GUIDANCE.get(key, FOCUS_GUIDANCE["balanced"])


def parse_generated_response(text: str) -> Dict[str, Any]:
    """Parse the JSON payload out of a model response.

    Markdown code fences are stripped; if the remainder still is not JSON,
    the outermost {...} block is tried.
    """
    if not text or not text.strip():
        raise WorkoutDataError("Empty response from AI")

    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if match is None:
            raise WorkoutDataError("Could not parse AI response as JSON")
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise WorkoutDataError(f"Could not parse AI response as JSON: {e}") from e


def _next_day_key(current_key: str, all_keys: List[str]) -> str:
    index = all_keys.index(current_key)
    if index == len(all_keys) - 1:
        return all_keys[0]
    return all_keys[index + 1]


def _clean_exercise(raw: Dict[str, Any]) -> Exercise:
    exercise = Exercise.from_dict(raw)
    exercise.sets = exercise.sets or 3
    exercise.range = exercise.range or "8-12"
    exercise.rest_period = exercise.rest_period or "90 sec"
    exercise.muscle_group = exercise.muscle_group or "General"
    if exercise.tips is None:
        exercise.tips = ExerciseTips(form=exercise.tip or "Focus on controlled movement")
    return exercise


def validate_generated_plan(data: Any) -> PlanValidation:
    """Check a parsed AI response and clean each workout day.

    Days without a name are kept under a generated name; days without any
    named exercise are dropped with a warning. Every kept day is tagged as
    AI generated and linked to the following day, wrapping around.
    """
    if not isinstance(data, dict):
        return PlanValidation(False, "Invalid response format")

    raw_plans = data.get("plans")
    if not isinstance(raw_plans, dict):
        return PlanValidation(False, "Missing plans object")

    plan_keys = list(raw_plans)
    if not plan_keys:
        return PlanValidation(False, "No workout days generated")

    cleaned_plans: Dict[str, WorkoutPlan] = {}
    errors = []

    for key in plan_keys:
        plan = raw_plans[key]
        if not isinstance(plan, dict):
            errors.append(f"Day {key} is not an object")
            continue

        if not plan.get("name"):
            errors.append(f"Day {key} missing name")

        raw_exercises = plan.get("exercises")
        if not isinstance(raw_exercises, list):
            errors.append(f"Day {key} missing exercises array")
            continue
        if not raw_exercises:
            errors.append(f"Day {key} has no exercises")
            continue

        exercises = [
            _clean_exercise(ex) for ex in raw_exercises
            if isinstance(ex, dict) and ex.get("name")
        ]
        if not exercises:
            errors.append(f"Day {key} has no valid exercises")
            continue

        cleaned_plans[key] = WorkoutPlan(
            id=key,
            name=str(plan.get("name") or f"Day {key}"),
            exercises=exercises,
            next=str(plan.get("next") or _next_day_key(key, plan_keys)),
            source=AI_GENERATED_SOURCE,
            desc=plan.get("desc") or plan.get("description") or "",
            est_time=plan.get("estTime") or "45-60 min",
            focus=plan.get("focus") or "balanced",
            day_tip=plan.get("dayTip") or "",
        )

    if not cleaned_plans:
        return PlanValidation(False, "; ".join(errors) if errors else "No valid workout days")

    warning = None
    if errors:
        warning = f"Generated with warnings: {'; '.join(errors)}"
        logger.warning(warning)

    program = GeneratedProgram(
        plans=cleaned_plans,
        program_name=str(data.get("programName") or ""),
        program_description=str(data.get("programDescription") or ""),
        weekly_volume=str(data.get("weeklyVolume") or ""),
    )
    return PlanValidation(True, warning, program)


def parse_reps(value: Union[str, int, float, None]) -> float:
    """Average reps of a range like "8-12"; 10 when unreadable."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value)
    match = _REP_RANGE.search(text)
    if match:
        return (int(match.group(1)) + int(match.group(2))) / 2
    single = _LEADING_INT.match(text)
    return int(single.group(1)) if single else 10


def calculate_plan_intensity(plan: Optional[WorkoutPlan]) -> PlanIntensity:
    """Score a plan's intensity from 0 to 100.

    Up to 40 points for exercise count, 32 for average sets and 28 for the
    share of compound movements.
    """
    if plan is None or not plan.exercises:
        return PlanIntensity(0, "Unknown")

    total_volume = 0
    compound_count = 0
    isolation_count = 0
    total_sets = 0

    for exercise in plan.exercises:
        sets = exercise.sets or 3
        total_sets += sets
        total_volume += sets * parse_reps(exercise.range or "8-12")

        name = (exercise.name or "").lower()
        if any(keyword in name for keyword in COMPOUND_KEYWORDS):
            compound_count += 1
        else:
            isolation_count += 1

    exercise_count = len(plan.exercises)
    avg_sets = total_sets / exercise_count
    compound_ratio = compound_count / exercise_count

    score = 0.0
    score += min(exercise_count * 8, 40)
    score += min(avg_sets * 8, 32)
    score += compound_ratio * 28

    if score < 35:
        level = "Low"
    elif score < 55:
        level = "Moderate"
    elif score < 75:
        level = "High"
    else:
        level = "Very High"

    return PlanIntensity(
        score=int(score + 0.5),
        level=level,
        breakdown={
            "exercise_count": exercise_count,
            "total_volume": total_volume,
            "avg_sets": int(avg_sets * 10 + 0.5) / 10,
            "compound_count": compound_count,
            "isolation_count": isolation_count,
            "compound_ratio": int(compound_ratio * 100 + 0.5),
        },
    )
