"""Configuration management for the workout coach."""

import os
from pathlib import Path
from typing import Dict
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Data
    DATA_FILE: Path = Path(os.getenv("WORKOUT_DATA_FILE", "workout_export.json"))

    # Rotation scoring
    COMPLEMENT_WEIGHT: int = int(os.getenv("COMPLEMENT_WEIGHT", "10"))  # per rank in the complement list
    RECENCY_PENALTY: int = int(os.getenv("RECENCY_PENALTY", "5"))  # per rank in the recent window
    NOVELTY_BONUS: int = int(os.getenv("NOVELTY_BONUS", "5"))
    AI_GENERATED_BONUS: int = int(os.getenv("AI_GENERATED_BONUS", "2"))
    RECENT_WINDOW: int = int(os.getenv("RECENT_WINDOW", "3"))  # sessions

    # Dashboard hints
    STREAK_MOTIVATION_THRESHOLD: int = int(os.getenv("STREAK_MOTIVATION_THRESHOLD", "7"))  # days

    # Statistics
    FOCUS_WINDOW: int = int(os.getenv("FOCUS_WINDOW", "10"))  # sessions
    TREND_WINDOW: int = int(os.getenv("TREND_WINDOW", "5"))  # data points per exercise

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

    @classmethod
    def get_scoring_weights(cls) -> Dict[str, int]:
        """Get the rotation scoring weights."""
        return {
            "complement_weight": cls.COMPLEMENT_WEIGHT,
            "recency_penalty": cls.RECENCY_PENALTY,
            "novelty_bonus": cls.NOVELTY_BONUS,
            "ai_generated_bonus": cls.AI_GENERATED_BONUS,
            "recent_window": cls.RECENT_WINDOW,
        }

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration values."""
        if cls.RECENT_WINDOW < 1:
            raise ValueError("RECENT_WINDOW must be at least 1")
        if cls.STREAK_MOTIVATION_THRESHOLD < 1:
            raise ValueError("STREAK_MOTIVATION_THRESHOLD must be at least 1")
        return True


config = Config()
