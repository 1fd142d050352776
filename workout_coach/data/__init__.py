"""Data loading module for the workout coach."""

from .loader import WorkoutData, load_export, parse_plans, parse_sessions

__all__ = ["WorkoutData", "load_export", "parse_plans", "parse_sessions"]
