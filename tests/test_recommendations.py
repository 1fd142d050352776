"""Tests for the workout recommendation engine."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from workout_coach.analysis.recommendations import (
    HintType,
    RecommendationEngine,
    RecommendationReason,
    categorize_plan,
    complementary_categories,
    days_since_last_workout,
    has_worked_out_today,
    next_action_hint,
    recent_categories,
    recommend,
    recommendation_reason,
)
from workout_coach.models import Exercise, PlanCategory, WorkoutPlan, WorkoutSession

NOW = datetime(2024, 6, 12, 15, 0)
NOW_UTC = NOW.astimezone(timezone.utc)


def make_plan(plan_id, name, exercises=(), next_id=None, source=None):
    return WorkoutPlan(
        id=plan_id,
        name=name,
        exercises=[Exercise(name=n) for n in exercises],
        next=next_id,
        source=source,
    )


def session(plan_id, timestamp):
    return WorkoutSession(timestamp=timestamp, workout_type=plan_id)


def plan_map(*plans):
    return {plan.id: plan for plan in plans}


class TestCategorizePlan:
    """Test plan categorization."""

    def test_identifies_push_workouts(self):
        assert categorize_plan(make_plan("a", "Push Day")) == PlanCategory.PUSH
        assert categorize_plan(make_plan("a", "Chest & Triceps")) == PlanCategory.PUSH
        assert categorize_plan(make_plan("a", "SHOULDER blast")) == PlanCategory.PUSH

    def test_identifies_pull_workouts(self):
        assert categorize_plan(make_plan("a", "Pull Day")) == PlanCategory.PULL
        assert categorize_plan(make_plan("a", "Back & Biceps")) == PlanCategory.PULL

    def test_identifies_leg_and_lower_workouts(self):
        assert categorize_plan(make_plan("a", "Leg Day")) == PlanCategory.LEGS
        assert categorize_plan(make_plan("a", "Lower Body")) == PlanCategory.LOWER

    def test_identifies_upper_and_full_body(self):
        assert categorize_plan(make_plan("a", "Upper Body")) == PlanCategory.UPPER
        assert categorize_plan(make_plan("a", "Full Body A")) == PlanCategory.FULL
        assert categorize_plan(make_plan("a", "FullBody Express")) == PlanCategory.FULL

    def test_name_rules_follow_priority_order(self):
        """Earlier keywords win when a name matches several."""
        assert categorize_plan(make_plan("a", "Push Pull Legs")) == PlanCategory.PUSH
        assert categorize_plan(make_plan("a", "Upper Legs")) == PlanCategory.LEGS
        assert categorize_plan(make_plan("a", "Lower Back")) == PlanCategory.LOWER
        assert categorize_plan(make_plan("a", "Full Body Pull")) == PlanCategory.PULL

    def test_falls_back_to_exercise_names(self):
        assert categorize_plan(make_plan("a", "Workout A", ["Back Squat"])) == PlanCategory.LEGS
        assert categorize_plan(make_plan("a", "Workout A", ["Bench Press", "Deadlift"])) == PlanCategory.LEGS
        assert categorize_plan(make_plan("a", "Workout A", ["Incline Bench"])) == PlanCategory.PUSH
        assert categorize_plan(make_plan("a", "Workout A", ["Overhead Press"])) == PlanCategory.PUSH
        assert categorize_plan(make_plan("a", "Workout A", ["Barbell Row"])) == PlanCategory.PULL
        assert categorize_plan(make_plan("a", "Workout A", ["Lat Pulldown"])) == PlanCategory.PULL

    def test_leg_press_counts_as_legs(self):
        assert categorize_plan(make_plan("a", "Session B", ["Leg Press", "Shoulder Press"])) == PlanCategory.LEGS

    def test_returns_other_for_unknown_types(self):
        assert categorize_plan(make_plan("a", "Mystery Workout")) == PlanCategory.OTHER
        assert categorize_plan(make_plan("a", "Mystery Workout", ["Plank", "Burpee"])) == PlanCategory.OTHER
        assert categorize_plan(make_plan("a", "")) == PlanCategory.OTHER
        assert categorize_plan(None) == PlanCategory.OTHER

    def test_empty_name_ignores_exercises(self):
        assert categorize_plan(make_plan("a", "", ["Squat"])) == PlanCategory.OTHER

    def test_is_deterministic(self):
        plan = make_plan("a", "Workout A", ["Cable Row", "Face Pull"])
        assert categorize_plan(plan) == categorize_plan(plan)


class TestComplementaryCategories:
    """Test the complement lookup table."""

    def test_table_entries(self):
        assert complementary_categories(PlanCategory.PUSH) == [
            PlanCategory.PULL, PlanCategory.LEGS, PlanCategory.LOWER
        ]
        assert complementary_categories(PlanCategory.LEGS) == [
            PlanCategory.PUSH, PlanCategory.PULL, PlanCategory.UPPER
        ]
        assert complementary_categories(PlanCategory.FULL) == [
            PlanCategory.FULL, PlanCategory.UPPER, PlanCategory.LOWER
        ]
        assert len(complementary_categories(PlanCategory.OTHER)) == 6

    def test_returns_a_copy(self):
        complements = complementary_categories(PlanCategory.PUSH)
        complements.clear()
        assert len(complementary_categories(PlanCategory.PUSH)) == 3


class TestHistoryQueries:
    """Test history helpers."""

    def test_worked_out_today_just_after_midnight(self):
        history = [session("p", datetime(2024, 6, 12, 0, 0, 1))]
        assert has_worked_out_today(history, NOW) is True

    def test_not_worked_out_today_late_yesterday(self):
        history = [session("p", datetime(2024, 6, 11, 23, 59))]
        assert has_worked_out_today(history, NOW) is False

    def test_worked_out_today_empty_history(self):
        assert has_worked_out_today([], NOW) is False
        assert has_worked_out_today(None, NOW) is False

    def test_worked_out_today_skips_missing_timestamps(self):
        history = [session("p", None), session("p", datetime(2024, 6, 12, 9, 0))]
        assert has_worked_out_today(history, NOW) is True

    def test_days_since_without_session(self):
        assert days_since_last_workout(None, NOW) == math.inf
        assert days_since_last_workout(session("p", None), NOW) == math.inf

    def test_days_since_truncates(self):
        """25 hours ago is one day, not two."""
        assert days_since_last_workout(session("p", NOW - timedelta(hours=25)), NOW) == 1
        assert days_since_last_workout(session("p", NOW - timedelta(hours=47)), NOW) == 1
        assert days_since_last_workout(session("p", NOW - timedelta(hours=48)), NOW) == 2
        assert days_since_last_workout(session("p", NOW), NOW) == 0

    def test_days_since_uses_absolute_difference(self):
        assert days_since_last_workout(session("p", NOW + timedelta(hours=30)), NOW) == 1

    def test_aware_now_is_compared_in_local_time(self):
        assert has_worked_out_today([session("p", NOW - timedelta(hours=2))], NOW_UTC) is True
        assert has_worked_out_today([session("p", NOW - timedelta(days=1))], NOW_UTC) is False
        assert days_since_last_workout(session("p", NOW - timedelta(days=3)), NOW_UTC) == 3

    def test_recent_categories(self):
        plans = plan_map(make_plan("push", "Push Day"), make_plan("legs", "Leg Day"))
        history = [
            session("legs", NOW),
            session("deleted", NOW - timedelta(days=1)),
            session("push", NOW - timedelta(days=2)),
            session("legs", NOW - timedelta(days=3)),
        ]
        assert recent_categories(history, plans, limit=3) == [
            PlanCategory.LEGS, PlanCategory.OTHER, PlanCategory.PUSH
        ]
        assert len(recent_categories(history, plans)) == 4
        assert recent_categories([], plans) == []


class TestRecommend:
    """Test plan recommendation cases."""

    @pytest.fixture
    def ppl_plans(self):
        return plan_map(
            make_plan("push-day", "Push Day", ["Bench Press", "Shoulder Press"], next_id="pull-day"),
            make_plan("pull-day", "Pull Day", ["Rows", "Lat Pulldown"], next_id="leg-day"),
            make_plan("leg-day", "Leg Day", ["Squats", "Leg Press"], next_id="push-day"),
        )

    def test_no_plans(self):
        result = recommend({}, [], None, 0)
        assert result.plan_id is None
        assert result.reason == RecommendationReason.NO_PLANS
        assert recommend(None).reason == RecommendationReason.NO_PLANS

    def test_single_plan_ignores_history(self):
        plans = plan_map(make_plan("only", "Only Plan", next_id="ghost"))
        last = session("only", NOW - timedelta(days=1))
        for history, last_session in (([], None), ([last], last)):
            result = recommend(plans, history, last_session, 5)
            assert result.plan_id == "only"
            assert result.reason == RecommendationReason.ONLY_PLAN

    def test_first_workout_uses_insertion_order(self, ppl_plans):
        result = recommend(ppl_plans, [], None)
        assert result.plan_id == "push-day"
        assert result.reason == RecommendationReason.FIRST_WORKOUT

    def test_first_workout_when_history_empty_but_last_given(self, ppl_plans):
        result = recommend(ppl_plans, [], session("leg-day", NOW))
        assert result.reason == RecommendationReason.FIRST_WORKOUT

    def test_follows_plan_sequence(self, ppl_plans):
        last = session("push-day", NOW)
        result = recommend(ppl_plans, [last], last)
        assert result.plan_id == "pull-day"
        assert result.reason == RecommendationReason.PLAN_SEQUENCE

    def test_sequence_wraps_around(self, ppl_plans):
        last = session("leg-day", NOW)
        result = recommend(ppl_plans, [last], last)
        assert result.plan_id == "push-day"
        assert result.reason == RecommendationReason.PLAN_SEQUENCE

    def test_dangling_next_falls_through_to_rotation(self):
        plans = plan_map(
            make_plan("P", "Push Day", next_id="deleted"),
            make_plan("L", "Leg Day"),
        )
        last = session("P", NOW - timedelta(days=1))
        result = recommend(plans, [last], last, 1)
        assert result.reason == RecommendationReason.SMART_ROTATION
        assert result.plan_id == "L"

    def test_rotation_prefers_complement(self):
        plans = plan_map(make_plan("P", "push-day"), make_plan("L", "legs-day"))
        last = session("P", NOW - timedelta(days=1))
        result = recommend(plans, [last], last, 1)
        assert result.plan_id == "L"
        assert result.reason == RecommendationReason.SMART_ROTATION
        assert result.category == PlanCategory.LEGS

    def test_rotation_ties_keep_first_plan(self):
        legs = make_plan("legs", "Leg Day")
        pull_a = make_plan("pull-a", "Pull A")
        pull_b = make_plan("pull-b", "Pull B")
        last = session("legs", NOW - timedelta(days=1))

        assert recommend(plan_map(legs, pull_a, pull_b), [last], last).plan_id == "pull-a"
        assert recommend(plan_map(legs, pull_b, pull_a), [last], last).plan_id == "pull-b"

    def test_rotation_ai_generated_bonus(self):
        plans = plan_map(
            make_plan("legs", "Leg Day"),
            make_plan("pull-a", "Pull A"),
            make_plan("pull-b", "Pull B", source="ai-generated"),
        )
        last = session("legs", NOW - timedelta(days=1))
        assert recommend(plans, [last], last).plan_id == "pull-b"

    def test_rotation_novelty_bonus(self):
        """A same-category plan not done recently beats one that was."""
        plans = plan_map(
            make_plan("push-a", "Push A"),
            make_plan("push-b", "Push B"),
            make_plan("legs", "Leg Day"),
        )
        history = [
            session("legs", NOW - timedelta(days=1)),
            session("push-a", NOW - timedelta(days=2)),
        ]
        result = recommend(plans, history, history[0])
        assert result.plan_id == "push-b"
        assert result.category == PlanCategory.PUSH

    def test_rotation_only_looks_at_three_sessions(self):
        plans = plan_map(
            make_plan("push", "Push Day"),
            make_plan("pull", "Pull Day"),
            make_plan("legs", "Leg Day"),
        )
        history = [
            session("legs", NOW - timedelta(days=1)),
            session("pull", NOW - timedelta(days=2)),
            session("legs", NOW - timedelta(days=3)),
            session("push", NOW - timedelta(days=4)),
        ]
        # push: 30 + novelty 5; pull: 20 - 10 penalty; legs: -20 penalty
        result = recommend(plans, history, history[0])
        assert result.plan_id == "push"

    def test_session_for_deleted_plan(self):
        plans = plan_map(make_plan("full", "Full Body"), make_plan("push", "Push Day"))
        last = session("ghost", NOW - timedelta(days=1))
        result = recommend(plans, [last], last)
        assert result.plan_id == "push"
        assert result.reason == RecommendationReason.SMART_ROTATION

    def test_recommended_id_always_in_plans(self, ppl_plans):
        plans = dict(ppl_plans)
        plans["mystery"] = make_plan("mystery", "Mystery", next_id="nowhere")
        for plan_id in list(plans) + ["ghost"]:
            last = session(plan_id, NOW - timedelta(days=1))
            result = recommend(plans, [last], last, 2)
            assert result.plan_id in plans

    def test_weight_overrides(self):
        plans = plan_map(
            make_plan("push", "Push Day"),
            make_plan("legs", "Leg Day", source="ai-generated"),
            make_plan("pull", "Pull Day"),
        )
        last = session("push", NOW - timedelta(days=1))
        engine = RecommendationEngine(weights={"ai_generated_bonus": 100})
        assert engine.recommend(plans, [last], last).plan_id == "legs"
        assert RecommendationEngine().recommend(plans, [last], last).plan_id == "pull"

    def test_to_dict(self):
        plans = plan_map(make_plan("P", "Push Day"), make_plan("L", "Leg Day"))
        last = session("P", NOW)
        assert recommend(plans, [last], last).to_dict() == {
            "recommendedId": "L",
            "reason": "smart_rotation",
            "category": "legs",
        }
        assert recommend({}).to_dict() == {"recommendedId": None, "reason": "no_plans"}


class TestRecommendationReason:
    """Test reason labels."""

    def test_human_readable_reasons(self):
        assert recommendation_reason("plan_sequence") == "Next in your routine"
        assert recommendation_reason("first_workout") == "Start your journey"
        assert recommendation_reason(RecommendationReason.SMART_ROTATION) == "Balanced muscle recovery"
        assert recommendation_reason("only_plan") == "Your workout"
        assert recommendation_reason("no_plans") == ""

    def test_default_for_unknown_reason(self):
        assert recommendation_reason("unknown") == "Recommended for you"
        assert recommendation_reason(None) == "Recommended for you"


class TestNextActionHint:
    """Test dashboard hints."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = RecommendationEngine(now_provider=lambda: NOW)
        self.yesterday = session("p", NOW - timedelta(days=1))

    def test_success_after_workout_today(self):
        today = session("p", NOW - timedelta(hours=2))
        hint = self.engine.next_action_hint(1, [today], today)
        assert hint.type == HintType.SUCCESS
        assert "Great job" in hint.message

    def test_broken_streak_warning(self):
        old = session("p", NOW - timedelta(days=5))
        hint = self.engine.next_action_hint(0, [old], old)
        assert hint.type == HintType.WARNING
        assert "Restart" in hint.message

    def test_long_streak_motivation(self):
        hint = self.engine.next_action_hint(10, [self.yesterday], self.yesterday)
        assert hint.type == HintType.MOTIVATION
        assert "10-day streak" in hint.message

    def test_short_streak_keeps_chain(self):
        hint = self.engine.next_action_hint(3, [self.yesterday], self.yesterday)
        assert hint.type == HintType.INFO
        assert "Don't break the chain" in hint.message

    def test_active_streak_wins_over_days_since(self):
        two_days = session("p", NOW - timedelta(days=2))
        hint = self.engine.next_action_hint(3, [two_days], two_days)
        assert "Don't break the chain" in hint.message

    def test_new_user_with_suggested_plan(self):
        hint = self.engine.next_action_hint(0, [], None, make_plan("p", "Push Day"))
        assert hint.type == HintType.INFO
        assert "Push Day" in hint.message

    def test_new_user_without_plans(self):
        hint = self.engine.next_action_hint(0, [], None, None)
        assert hint.type == HintType.INFO
        assert "Create your first workout plan" in hint.message

    def test_default_after_yesterday_without_streak(self):
        hint = self.engine.next_action_hint(0, [self.yesterday], self.yesterday)
        assert hint.message == "Ready for today's workout?"
        assert hint.type == HintType.INFO

    def test_non_numeric_streak_is_zero(self):
        old = session("p", NOW - timedelta(days=5))
        for streak in (None, "abc", float("nan")):
            hint = self.engine.next_action_hint(streak, [old], old)
            assert hint.type == HintType.WARNING

    def test_negative_streak_reaches_day_gap_cases(self):
        two_days = session("p", NOW - timedelta(days=2))
        hint = self.engine.next_action_hint(-1, [two_days], two_days)
        assert "Time to get back at it" in hint.message

        old = session("p", NOW - timedelta(days=6))
        hint = self.engine.next_action_hint(-1, [old], old)
        assert hint.type == HintType.WARNING
        assert "start with something light" in hint.message

    def test_custom_motivation_threshold(self):
        engine = RecommendationEngine(now_provider=lambda: NOW, motivation_threshold=3)
        hint = engine.next_action_hint(3, [self.yesterday], self.yesterday)
        assert hint.type == HintType.MOTIVATION

    def test_module_function_with_explicit_now(self):
        hint = next_action_hint(10, [self.yesterday], self.yesterday, None, now=NOW)
        assert hint.type == HintType.MOTIVATION
        assert "10" in hint.message

    def test_aware_now(self):
        old = session("p", NOW - timedelta(days=5))
        hint = next_action_hint(0, [old], old, None, now=NOW_UTC)
        assert hint.type == HintType.WARNING
        assert "Restart" in hint.message

        engine = RecommendationEngine(now_provider=lambda: NOW_UTC)
        assert engine.next_action_hint(3, [self.yesterday], self.yesterday).type == HintType.INFO

    def test_empty_inputs_do_not_raise(self):
        result = recommend({}, [], None, 0)
        hint = next_action_hint(0, [], None, None, now=NOW)
        assert result.plan_id is None
        assert hint is not None
        assert hint.to_dict()["type"] == "info"
