"""Load plans and workout history from a JSON export of the web app."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config import config
from ..models import WorkoutDataError, WorkoutPlan, WorkoutSession

logger = logging.getLogger(__name__)


@dataclass
class WorkoutData:
    """Plans in insertion order and sessions most-recent-first."""
    plans: Dict[str, WorkoutPlan] = field(default_factory=dict)
    sessions: List[WorkoutSession] = field(default_factory=list)

    @property
    def last_session(self) -> Optional[WorkoutSession]:
        return self.sessions[0] if self.sessions else None


def parse_plans(raw: Any) -> Dict[str, WorkoutPlan]:
    """Build the plan collection from a mapping keyed by id or a list of plans."""
    plans: Dict[str, WorkoutPlan] = {}
    if raw is None:
        return plans

    if isinstance(raw, dict):
        items = list(raw.items())
    elif isinstance(raw, list):
        items = [(entry.get("id") if isinstance(entry, dict) else None, entry) for entry in raw]
    else:
        raise WorkoutDataError(f"Unexpected plans format: {type(raw).__name__}")

    for plan_id, entry in items:
        if not isinstance(entry, dict) or plan_id in (None, ""):
            logger.warning(f"Skipping plan without id or body: {plan_id!r}")
            continue
        plans[str(plan_id)] = WorkoutPlan.from_dict(entry, plan_id=str(plan_id))

    return plans


def parse_sessions(raw: Any) -> List[WorkoutSession]:
    """Build sessions sorted most-recent-first; entries without a timestamp are dropped."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise WorkoutDataError(f"Unexpected workouts format: {type(raw).__name__}")

    sessions = []
    for entry in raw:
        if not isinstance(entry, dict):
            logger.warning(f"Skipping malformed workout entry: {entry!r}")
            continue
        session = WorkoutSession.from_dict(entry)
        if session.timestamp is None:
            logger.warning(f"Skipping workout without a readable timestamp: {entry.get('workoutType')!r}")
            continue
        sessions.append(session)

    sessions.sort(key=lambda s: s.timestamp or datetime.min, reverse=True)
    return sessions


def load_export(path: Optional[Union[str, Path]] = None) -> WorkoutData:
    """Read `{"plans": ..., "workouts": [...]}` from a JSON file."""
    path = Path(path) if path is not None else config.DATA_FILE

    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as e:
        raise WorkoutDataError(f"Export file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise WorkoutDataError(f"Export file {path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise WorkoutDataError(f"Export file {path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise WorkoutDataError(f"Could not read export file {path}: {e}") from e

    if not isinstance(payload, dict):
        raise WorkoutDataError(f"Export file {path} must contain a JSON object")

    data = WorkoutData(
        plans=parse_plans(payload.get("plans")),
        sessions=parse_sessions(payload.get("workouts", payload.get("sessions"))),
    )
    # older exports only carry the plan id on each workout
    for session in data.sessions:
        plan = data.plans.get(session.workout_type)
        if not session.workout_name and plan is not None:
            session.workout_name = plan.name
    logger.info(f"Loaded {len(data.plans)} plans and {len(data.sessions)} workouts from {path}")
    return data
