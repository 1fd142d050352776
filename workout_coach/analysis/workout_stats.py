"""Workout history statistics: streaks, volume, focus balance and strength trends."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pandas as pd

from ..config import config
from ..models import WorkoutSession, parse_timestamp

FOCUS_AREAS = ("Upper", "Lower", "Full", "Other")

UPPER_EXERCISES = ['bench', 'press', 'row', 'pull', 'curl', 'tricep', 'shoulder', 'lat', 'fly', 'pushup']
LOWER_EXERCISES = ['squat', 'deadlift', 'lunge', 'leg', 'calf', 'glute', 'hip', 'hamstring', 'quad']


@dataclass
class PersonalRecord:
    """Best single set for an exercise, by weight x reps."""
    name: str
    weight: float
    reps: int
    volume: float
    date: Optional[datetime]


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _sessions_frame(sessions: Optional[Sequence[WorkoutSession]]) -> pd.DataFrame:
    """Timestamped sessions as a DataFrame with one row per session."""
    rows = [
        {"timestamp": s.timestamp, "workout_type": s.workout_type}
        for s in sessions or []
        if s is not None and s.timestamp is not None
    ]
    frame = pd.DataFrame(rows, columns=["timestamp", "workout_type"])
    frame["timestamp"] = pd.to_datetime(frame["timestamp"])
    return frame


def current_streak(sessions: Optional[Sequence[WorkoutSession]], now: Optional[datetime] = None) -> int:
    """Consecutive training days counted back from today.

    A workout today or yesterday keeps the streak alive. When earlier days
    exist, the count runs through yesterday.
    """
    frame = _sessions_frame(sessions)
    if frame.empty:
        return 0

    today = pd.Timestamp((parse_timestamp(now) or datetime.now()).date())
    unique_dates = frame["timestamp"].dt.normalize().drop_duplicates().sort_values(ascending=False)

    streak = 0
    for workout_date in unique_dates:
        days_diff = (today - workout_date).days
        if days_diff <= streak + 1:
            streak = streak if days_diff == streak else streak + 1
        else:
            break

    if streak > 0:
        return streak
    return 1 if (today - unique_dates.iloc[0]).days <= 1 else 0


def total_workouts(sessions: Optional[Sequence[WorkoutSession]]) -> int:
    return len(sessions) if sessions else 0


def _session_minutes(session: WorkoutSession) -> Optional[float]:
    if session.duration_minutes:
        return session.duration_minutes
    if session.started_at and session.completed_at:
        return _round_half_up((session.completed_at - session.started_at).total_seconds() / 60)
    return None


def average_session_duration(sessions: Optional[Sequence[WorkoutSession]]) -> int:
    """Mean duration in minutes over sessions that recorded one."""
    durations = [
        minutes for minutes in (_session_minutes(s) for s in sessions or [] if s is not None)
        if minutes is not None and minutes > 0
    ]
    if not durations:
        return 0
    return int(_round_half_up(sum(durations) / len(durations)))


def workouts_this_week(sessions: Optional[Sequence[WorkoutSession]], now: Optional[datetime] = None) -> int:
    """Sessions since the start of the current week (weeks start on Sunday)."""
    frame = _sessions_frame(sessions)
    now = parse_timestamp(now) or datetime.now()
    days_since_sunday = (now.weekday() + 1) % 7
    week_start = pd.Timestamp(now.date() - timedelta(days=days_since_sunday))
    return int((frame["timestamp"] >= week_start).sum())


def workouts_this_month(sessions: Optional[Sequence[WorkoutSession]], now: Optional[datetime] = None) -> int:
    """Sessions since the first day of the current month."""
    frame = _sessions_frame(sessions)
    now = parse_timestamp(now) or datetime.now()
    month_start = pd.Timestamp(now.year, now.month, 1)
    return int((frame["timestamp"] >= month_start).sum())


def determine_focus(session: WorkoutSession) -> str:
    """Upper, Lower, Full or Other for a logged session."""
    if session.focus:
        focus = session.focus.lower()
        if 'upper' in focus or 'push' in focus or 'pull' in focus:
            return "Upper"
        if 'lower' in focus or 'leg' in focus:
            return "Lower"
        if 'full' in focus:
            return "Full"

    if session.workout_name:
        plan_name = session.workout_name.lower()
        if any(k in plan_name for k in ('upper', 'push', 'pull', 'chest', 'back', 'shoulder', 'arm')):
            return "Upper"
        if any(k in plan_name for k in ('lower', 'leg', 'glute')):
            return "Lower"
        if 'full' in plan_name:
            return "Full"

    if session.exercises:
        upper_count = 0
        lower_count = 0
        for exercise in session.exercises:
            name = (exercise.name or "").lower()
            if any(keyword in name for keyword in UPPER_EXERCISES):
                upper_count += 1
            if any(keyword in name for keyword in LOWER_EXERCISES):
                lower_count += 1

        total = len(session.exercises)
        if upper_count > total * 0.6:
            return "Upper"
        if lower_count > total * 0.6:
            return "Lower"
        if upper_count > 0 and lower_count > 0:
            return "Full"

    return "Other"


def _most_recent_first(sessions: Sequence[WorkoutSession]) -> List[WorkoutSession]:
    return sorted(
        (s for s in sessions if s is not None),
        key=lambda s: s.timestamp or datetime.min,
        reverse=True,
    )


def recent_focus_distribution(
    sessions: Optional[Sequence[WorkoutSession]],
    limit: Optional[int] = None,
) -> Dict[str, int]:
    """Count of focus areas over the most recent `limit` sessions."""
    distribution = {area: 0 for area in FOCUS_AREAS}
    if not sessions:
        return distribution

    limit = config.FOCUS_WINDOW if limit is None else limit
    for session in _most_recent_first(sessions)[:limit]:
        distribution[determine_focus(session)] += 1
    return distribution


def most_worked_focus(sessions: Optional[Sequence[WorkoutSession]]) -> Optional[str]:
    """Most frequent focus area across all sessions, ignoring Other."""
    distribution = recent_focus_distribution(sessions, len(sessions or []))

    max_count = 0
    max_focus = None
    for focus, count in distribution.items():
        if count > max_count and focus != "Other":
            max_count = count
            max_focus = focus
    return max_focus


def one_rep_max(weight: float, reps: int) -> float:
    """Estimated 1RM using the Epley formula."""
    if not weight or not reps:
        return 0
    if reps == 1:
        return weight
    return _round_half_up(weight * (1 + reps / 30))


def personal_records(sessions: Optional[Sequence[WorkoutSession]]) -> Dict[str, PersonalRecord]:
    """Best set per exercise (keyed by lower-cased name), ranked by weight x reps."""
    records: Dict[str, PersonalRecord] = {}

    for session in sessions or []:
        if session is None:
            continue
        for exercise in session.exercises:
            if not exercise.name:
                continue
            key = exercise.name.lower()
            for logged in exercise.sets:
                if logged.weight <= 0 or logged.reps <= 0:
                    continue
                volume = logged.weight * logged.reps
                if key not in records or volume > records[key].volume:
                    records[key] = PersonalRecord(
                        name=exercise.name,
                        weight=logged.weight,
                        reps=logged.reps,
                        volume=volume,
                        date=session.timestamp,
                    )

    return records


def strength_trends(sessions: Optional[Sequence[WorkoutSession]], window: Optional[int] = None) -> Dict[str, Dict]:
    """Estimated-1RM change per exercise over its last `window` sessions.

    Returns a mapping of exercise name to current 1RM, percentage
    improvement and the recent history points.
    """
    window = config.TREND_WINDOW if window is None else window
    if not sessions or len(sessions) < 2:
        return {}

    rows = []
    for session in sessions:
        if session is None or session.timestamp is None:
            continue
        for exercise in session.exercises:
            name = (exercise.name or "").lower()
            if not name:
                continue
            best = max((one_rep_max(s.weight, s.reps) for s in exercise.sets), default=0)
            if best > 0:
                rows.append({"date": session.timestamp, "exercise": name, "one_rm": best})

    if not rows:
        return {}

    frame = pd.DataFrame(rows).sort_values("date", kind="stable")
    trends = {}
    for name, group in frame.groupby("exercise", sort=False):
        if len(group) < 2:
            continue
        current = group["one_rm"].iloc[-1]
        previous = group["one_rm"].iloc[max(0, len(group) - window)]
        percent_change = (current - previous) / previous * 100
        trends[name] = {
            "current_1rm": float(current),
            "improvement": _round_half_up(percent_change, 1),
            "history": [
                {"date": row.date.to_pydatetime(), "one_rm": float(row.one_rm)}
                for row in group.tail(window).itertuples()
            ],
        }

    return trends


def weekly_volume(sessions: Optional[Sequence[WorkoutSession]], now: Optional[datetime] = None) -> Dict[str, int]:
    """Sets logged in the last 7 days, grouped by plan id."""
    now = parse_timestamp(now) or datetime.now()
    one_week_ago = now - timedelta(days=7)
    volume: Dict[str, int] = {}

    for session in sessions or []:
        if session is None or session.timestamp is None or session.timestamp < one_week_ago:
            continue
        key = session.workout_type or "Other"
        # no logged exercises, absent or empty, counts as one unit of volume
        if session.exercises:
            sets = sum(len(ex.sets) for ex in session.exercises)
        else:
            sets = 1
        volume[key] = volume.get(key, 0) + sets

    return volume


def workout_summary(sessions: Optional[Sequence[WorkoutSession]], now: Optional[datetime] = None) -> Dict:
    """All headline statistics in one dictionary."""
    return {
        "total_workouts": total_workouts(sessions),
        "current_streak": current_streak(sessions, now),
        "average_duration": average_session_duration(sessions),
        "workouts_this_week": workouts_this_week(sessions, now),
        "workouts_this_month": workouts_this_month(sessions, now),
        "focus_distribution": recent_focus_distribution(sessions),
        "most_worked_focus": most_worked_focus(sessions),
    }
