"""Analysis module for workout recommendations and statistics."""

from .recommendations import (
    Hint,
    HintType,
    Recommendation,
    RecommendationEngine,
    RecommendationReason,
    categorize_plan,
    next_action_hint,
    recommend,
)
from .plan_generation import calculate_plan_intensity, validate_generated_plan
from .workout_stats import current_streak, workout_summary

__all__ = [
    "Hint",
    "HintType",
    "Recommendation",
    "RecommendationEngine",
    "RecommendationReason",
    "categorize_plan",
    "next_action_hint",
    "recommend",
    "calculate_plan_intensity",
    "validate_generated_plan",
    "current_streak",
    "workout_summary",
]
