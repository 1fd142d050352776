"""Data models for workout plans and logged workout sessions.

Records are plain dataclasses built permissively from the dictionaries the
web app exports. Both camelCase and snake_case keys are accepted.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


AI_GENERATED_SOURCE = "ai-generated"


class WorkoutDataError(ValueError):
    """Raised when exported workout data cannot be read."""


class PlanCategory(Enum):
    """Muscle-group classification of a workout plan."""

    PUSH = "push"
    PULL = "pull"
    LEGS = "legs"
    UPPER = "upper"
    LOWER = "lower"
    FULL = "full"
    OTHER = "other"


def _pick(data: Dict[str, Any], *keys, default=None):
    """Return the first present, non-None value among keys."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def parse_timestamp(value) -> Optional[datetime]:
    """Convert a timestamp to a naive local datetime.

    Accepts datetimes, dates, ISO-8601 strings and epoch milliseconds.
    Returns None for anything unreadable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _to_int(value, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class ExerciseTips:
    """Coaching tips attached to an exercise, usually AI generated."""
    form: str = ""
    cues: List[str] = field(default_factory=list)
    mistakes: List[str] = field(default_factory=list)
    goal: str = ""
    progression: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ExerciseTips"]:
        if not isinstance(data, dict):
            return None
        return cls(
            form=str(data.get("form") or ""),
            cues=[str(c) for c in data.get("cues") or []],
            mistakes=[str(m) for m in data.get("mistakes") or []],
            goal=str(data.get("goal") or ""),
            progression=str(data.get("progression") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "form": self.form,
            "cues": list(self.cues),
            "mistakes": list(self.mistakes),
            "goal": self.goal,
            "progression": self.progression,
        }


@dataclass
class Exercise:
    """Exercise prescription inside a workout plan."""
    name: str
    sets: int = 3
    range: Union[str, int] = "8-12"  # rep range, e.g. "8-12", or a fixed count
    rest_period: str = ""
    muscle_group: str = ""
    tip: str = ""
    tips: Optional[ExerciseTips] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Exercise":
        return cls(
            name=str(data.get("name") or ""),
            sets=_to_int(data.get("sets"), 3),
            range=_pick(data, "range", "reps", default="8-12"),
            rest_period=str(_pick(data, "restPeriod", "rest_period", default="")),
            muscle_group=str(_pick(data, "muscleGroup", "muscle_group", default="")),
            tip=str(data.get("tip") or ""),
            tips=ExerciseTips.from_dict(data.get("tips")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "sets": self.sets,
            "range": self.range,
            "restPeriod": self.rest_period,
            "muscleGroup": self.muscle_group,
            "tip": self.tip,
        }
        if self.tips is not None:
            result["tips"] = self.tips.to_dict()
        return result


@dataclass
class WorkoutPlan:
    """Reusable workout template."""
    id: str
    name: str = ""
    exercises: List[Exercise] = field(default_factory=list)
    next: Optional[str] = None  # id of the plan that follows in a rotation
    source: Optional[str] = None
    desc: str = ""
    est_time: str = ""
    focus: str = ""
    day_tip: str = ""

    @property
    def is_ai_generated(self) -> bool:
        return self.source == AI_GENERATED_SOURCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any], plan_id: Optional[str] = None) -> "WorkoutPlan":
        exercises = [
            Exercise.from_dict(ex) for ex in data.get("exercises") or []
            if isinstance(ex, dict)
        ]
        next_id = data.get("next")
        return cls(
            id=str(plan_id if plan_id is not None else data.get("id", "")),
            name=str(data.get("name") or ""),
            exercises=exercises,
            next=str(next_id) if next_id else None,
            source=data.get("source"),
            desc=str(_pick(data, "desc", "description", default="")),
            est_time=str(_pick(data, "estTime", "est_time", default="")),
            focus=str(data.get("focus") or ""),
            day_tip=str(_pick(data, "dayTip", "day_tip", default="")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "next": self.next,
            "source": self.source,
            "desc": self.desc,
            "estTime": self.est_time,
            "focus": self.focus,
            "dayTip": self.day_tip,
            "exercises": [ex.to_dict() for ex in self.exercises],
        }


@dataclass
class LoggedSet:
    weight: float = 0.0
    reps: int = 0


@dataclass
class LoggedExercise:
    """Exercise as performed during a session."""
    name: str
    sets: List[LoggedSet] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggedExercise":
        raw_sets = data.get("sets")
        sets = []
        if isinstance(raw_sets, list):
            for s in raw_sets:
                if isinstance(s, dict):
                    sets.append(LoggedSet(_to_float(s.get("weight")), _to_int(s.get("reps"))))
        return cls(
            name=str(_pick(data, "name", "exercise_name", default="")),
            sets=sets,
        )


@dataclass
class WorkoutSession:
    """Historical record of one completed workout."""
    timestamp: Optional[datetime]
    workout_type: Optional[str] = None  # id of the plan this session instantiated
    workout_name: str = ""
    focus: str = ""
    duration_minutes: Optional[float] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    exercises: List[LoggedExercise] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSession":
        duration = None
        if _pick(data, "duration_minutes", "durationMinutes") is not None:
            duration = _to_float(_pick(data, "duration_minutes", "durationMinutes"))
        elif data.get("duration") is not None:
            # exported duration is in seconds
            duration = float(int(_to_float(data["duration"]) / 60 + 0.5))

        workout_type = _pick(data, "workoutType", "workout_type")
        return cls(
            timestamp=parse_timestamp(_pick(data, "timestamp", "created_at", "createdAt")),
            workout_type=str(workout_type) if workout_type is not None else None,
            workout_name=str(_pick(data, "workoutName", "workout_name", "plan_name", default="")),
            focus=str(data.get("focus") or ""),
            duration_minutes=duration,
            started_at=parse_timestamp(_pick(data, "started_at", "startedAt")),
            completed_at=parse_timestamp(_pick(data, "completed_at", "completedAt")),
            exercises=[
                LoggedExercise.from_dict(ex) for ex in data.get("exercises") or []
                if isinstance(ex, dict)
            ],
        )
