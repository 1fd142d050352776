"""Workout recommendation engine.

Decides which workout plan to suggest next from the plan collection, the
workout history and the current streak, and produces the dashboard hint.

History is expected most-recent-first. The engine does not re-sort it.
Aware datetimes, `now` included, are compared in local time.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..config import config
from ..models import PlanCategory, WorkoutPlan, WorkoutSession, parse_timestamp

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

# Name keywords, checked in order; first match wins.
NAME_RULES = [
    (("push",), PlanCategory.PUSH),
    (("pull",), PlanCategory.PULL),
    (("leg",), PlanCategory.LEGS),
    (("lower",), PlanCategory.LOWER),
    (("upper",), PlanCategory.UPPER),
    (("full body", "fullbody"), PlanCategory.FULL),
    (("chest", "shoulder", "tricep"), PlanCategory.PUSH),
    (("back", "bicep"), PlanCategory.PULL),
]

COMPLEMENTS = {
    PlanCategory.PUSH: [PlanCategory.PULL, PlanCategory.LEGS, PlanCategory.LOWER],
    PlanCategory.PULL: [PlanCategory.LEGS, PlanCategory.PUSH, PlanCategory.LOWER],
    PlanCategory.LEGS: [PlanCategory.PUSH, PlanCategory.PULL, PlanCategory.UPPER],
    PlanCategory.UPPER: [PlanCategory.LOWER, PlanCategory.LEGS, PlanCategory.FULL],
    PlanCategory.LOWER: [PlanCategory.UPPER, PlanCategory.PUSH, PlanCategory.PULL],
    PlanCategory.FULL: [PlanCategory.FULL, PlanCategory.UPPER, PlanCategory.LOWER],
    PlanCategory.OTHER: [
        PlanCategory.PUSH,
        PlanCategory.PULL,
        PlanCategory.LEGS,
        PlanCategory.UPPER,
        PlanCategory.LOWER,
        PlanCategory.FULL,
    ],
}


class RecommendationReason(Enum):
    """Why a plan was recommended."""

    NO_PLANS = "no_plans"
    ONLY_PLAN = "only_plan"
    FIRST_WORKOUT = "first_workout"
    PLAN_SEQUENCE = "plan_sequence"
    SMART_ROTATION = "smart_rotation"


REASON_LABELS = {
    RecommendationReason.PLAN_SEQUENCE: "Next in your routine",
    RecommendationReason.SMART_ROTATION: "Balanced muscle recovery",
    RecommendationReason.FIRST_WORKOUT: "Start your journey",
    RecommendationReason.ONLY_PLAN: "Your workout",
    RecommendationReason.NO_PLANS: "",
}


class HintType(Enum):
    """Display style of a dashboard hint."""

    SUCCESS = "success"
    WARNING = "warning"
    MOTIVATION = "motivation"
    INFO = "info"


@dataclass
class Recommendation:
    """Suggested plan and the reason it was chosen."""
    plan_id: Optional[str]
    reason: RecommendationReason
    category: Optional[PlanCategory] = None

    def to_dict(self) -> Dict:
        result = {"recommendedId": self.plan_id, "reason": self.reason.value}
        if self.category is not None:
            result["category"] = self.category.value
        return result


@dataclass
class Hint:
    """Short dashboard message."""
    message: str
    type: HintType

    def to_dict(self) -> Dict:
        return {"message": self.message, "type": self.type.value}


def categorize_plan(plan: Optional[WorkoutPlan]) -> PlanCategory:
    """Classify a plan by muscle focus using its name, then its exercises."""
    if plan is None or not plan.name:
        return PlanCategory.OTHER

    name = plan.name.lower()
    for keywords, category in NAME_RULES:
        if any(keyword in name for keyword in keywords):
            return category

    if plan.exercises:
        exercise_names = " ".join((ex.name or "").lower() for ex in plan.exercises)

        if "squat" in exercise_names or "deadlift" in exercise_names or "leg" in exercise_names:
            return PlanCategory.LEGS
        if "bench" in exercise_names or ("press" in exercise_names and "leg" not in exercise_names):
            return PlanCategory.PUSH
        if "row" in exercise_names or "pull" in exercise_names:
            return PlanCategory.PULL

    return PlanCategory.OTHER


def complementary_categories(category: PlanCategory) -> List[PlanCategory]:
    """Categories that pair well after `category`, best first."""
    return list(COMPLEMENTS.get(category, COMPLEMENTS[PlanCategory.OTHER]))


def _session_time(session: Optional[WorkoutSession]) -> Optional[datetime]:
    if session is None:
        return None
    return parse_timestamp(getattr(session, "timestamp", None))


def has_worked_out_today(history: Optional[Sequence[WorkoutSession]], now: Optional[datetime] = None) -> bool:
    """Whether any session falls on today's local calendar date."""
    if not history:
        return False

    today = (parse_timestamp(now) or datetime.now()).date()
    for session in history:
        timestamp = _session_time(session)
        if timestamp is not None and timestamp.date() == today:
            return True
    return False


def days_since_last_workout(last_session: Optional[WorkoutSession], now: Optional[datetime] = None) -> Union[int, float]:
    """Whole days elapsed since the session, floored; infinity without one.

    A session 25 hours ago counts as 1 day, not 2.
    """
    timestamp = _session_time(last_session)
    if timestamp is None:
        return math.inf

    elapsed = abs((parse_timestamp(now) or datetime.now()) - timestamp)
    return elapsed // ONE_DAY


def recent_categories(
    history: Optional[Sequence[WorkoutSession]],
    plans: Optional[Dict[str, WorkoutPlan]],
    limit: int = 5,
) -> List[PlanCategory]:
    """Categories of the first `limit` sessions; deleted plans count as other."""
    if not history:
        return []

    plans = plans or {}
    categories = []
    for session in list(history)[:limit]:
        plan = plans.get(session.workout_type) if session is not None else None
        categories.append(categorize_plan(plan) if plan is not None else PlanCategory.OTHER)
    return categories


def recommendation_reason(reason: Union[RecommendationReason, str, None]) -> str:
    """Human-readable label for a reason code."""
    try:
        reason = RecommendationReason(reason)
    except ValueError:
        return "Recommended for you"
    return REASON_LABELS.get(reason, "Recommended for you")


def _coerce_streak(streak) -> int:
    if isinstance(streak, bool) or not isinstance(streak, (int, float)):
        return 0
    if isinstance(streak, float) and not math.isfinite(streak):
        return 0
    return int(streak)


class RecommendationEngine:
    """Suggest the next workout plan and a dashboard hint."""

    def __init__(
        self,
        now_provider: Optional[Callable[[], datetime]] = None,
        weights: Optional[Dict[str, int]] = None,
        motivation_threshold: Optional[int] = None,
    ):
        self.now_provider = now_provider or datetime.now
        self.weights = config.get_scoring_weights()
        if weights:
            self.weights.update(weights)
        self.motivation_threshold = (
            motivation_threshold if motivation_threshold is not None
            else config.STREAK_MOTIVATION_THRESHOLD
        )

    def _now(self, now: Optional[datetime]) -> datetime:
        return parse_timestamp(now if now is not None else self.now_provider())

    def recommend(
        self,
        plans: Optional[Dict[str, WorkoutPlan]],
        history: Optional[Sequence[WorkoutSession]] = None,
        last_session: Optional[WorkoutSession] = None,
        streak=0,
    ) -> Recommendation:
        """Pick the plan to do next.

        Cases are checked in order: no plans, a single plan, no history,
        an explicit `next` sequence, then smart rotation scoring. The
        streak does not currently influence the choice.
        """
        plans = plans or {}
        history = list(history or [])
        plan_ids = list(plans)

        if not plan_ids:
            return Recommendation(None, RecommendationReason.NO_PLANS)

        if len(plan_ids) == 1:
            return Recommendation(plan_ids[0], RecommendationReason.ONLY_PLAN)

        if last_session is None or not history:
            return Recommendation(plan_ids[0], RecommendationReason.FIRST_WORKOUT)

        last_plan = plans.get(last_session.workout_type) if last_session.workout_type else None
        if last_plan is not None and last_plan.next:
            if last_plan.next in plans:
                logger.debug(f"Following plan sequence {last_plan.id} -> {last_plan.next}")
                return Recommendation(last_plan.next, RecommendationReason.PLAN_SEQUENCE)
            logger.debug(f"Plan {last_plan.id} points to missing plan {last_plan.next}, rotating instead")

        return self._smart_rotation(plans, history)

    def _smart_rotation(self, plans: Dict[str, WorkoutPlan], history: List[WorkoutSession]) -> Recommendation:
        window = self.weights["recent_window"]
        recent = recent_categories(history, plans, limit=window)
        last_category = recent[0] if recent else PlanCategory.OTHER
        preferred = complementary_categories(last_category)
        recent_ids = [session.workout_type for session in history[:window] if session is not None]

        best_id, best_score, best_category = None, None, None
        for plan_id, plan in plans.items():
            category = categorize_plan(plan)
            score = self.score_plan(plan_id, plan, category, preferred, recent, recent_ids)
            # strict comparison keeps the earliest plan on ties
            if best_score is None or score > best_score:
                best_id, best_score, best_category = plan_id, score, category

        logger.debug(f"Smart rotation after {last_category.value}: {best_id} scored {best_score}")
        return Recommendation(best_id, RecommendationReason.SMART_ROTATION, best_category)

    def score_plan(
        self,
        plan_id: str,
        plan: WorkoutPlan,
        category: PlanCategory,
        preferred: List[PlanCategory],
        recent: List[PlanCategory],
        recent_ids: List[Optional[str]],
    ) -> int:
        """Rotation score for one plan; higher is better."""
        score = 0

        if category in preferred:
            score += (len(preferred) - preferred.index(category)) * self.weights["complement_weight"]

        for index, recent_category in enumerate(recent):
            if category == recent_category:
                score -= (len(recent) - index) * self.weights["recency_penalty"]

        if plan_id not in recent_ids:
            score += self.weights["novelty_bonus"]

        if getattr(plan, "is_ai_generated", False):
            score += self.weights["ai_generated_bonus"]

        return score

    def next_action_hint(
        self,
        streak,
        history: Optional[Sequence[WorkoutSession]] = None,
        last_session: Optional[WorkoutSession] = None,
        suggested_plan: Optional[WorkoutPlan] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Hint]:
        """Contextual message for the dashboard; first matching case wins."""
        now = self._now(now)
        streak = _coerce_streak(streak)
        history = list(history or [])
        worked_out_today = has_worked_out_today(history, now)
        days_since = days_since_last_workout(last_session, now)

        if worked_out_today:
            return Hint("Great job today! Rest up and come back stronger 💪", HintType.SUCCESS)

        if streak == 0 and last_session is not None and days_since > 1:
            return Hint("Restart your streak with a quick session today!", HintType.WARNING)

        if streak > 0:
            if streak >= self.motivation_threshold:
                return Hint(f"Keep your {streak}-day streak alive! You're on fire 🔥", HintType.MOTIVATION)
            return Hint("Don't break the chain! Start your workout today.", HintType.INFO)

        if not history:
            if suggested_plan is not None and suggested_plan.name:
                return Hint(f"Start your fitness journey with {suggested_plan.name}!", HintType.INFO)
            return Hint("Create your first workout plan to get started!", HintType.INFO)

        if 2 <= days_since <= 3:
            return Hint("Time to get back at it! Your muscles are ready.", HintType.INFO)

        if days_since >= 4:
            return Hint("It's been a while - start with something light today!", HintType.WARNING)

        return Hint("Ready for today's workout?", HintType.INFO)


def recommend(
    plans: Optional[Dict[str, WorkoutPlan]],
    history: Optional[Sequence[WorkoutSession]] = None,
    last_session: Optional[WorkoutSession] = None,
    streak=0,
) -> Recommendation:
    """Recommend the next plan with the configured scoring weights."""
    return RecommendationEngine().recommend(plans, history, last_session, streak)


def next_action_hint(
    streak,
    history: Optional[Sequence[WorkoutSession]] = None,
    last_session: Optional[WorkoutSession] = None,
    suggested_plan: Optional[WorkoutPlan] = None,
    now: Optional[datetime] = None,
) -> Optional[Hint]:
    """Dashboard hint using the configured thresholds."""
    return RecommendationEngine().next_action_hint(streak, history, last_session, suggested_plan, now)
