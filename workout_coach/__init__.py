"""Workout plan recommendations and history statistics."""

__version__ = "0.1.0"
