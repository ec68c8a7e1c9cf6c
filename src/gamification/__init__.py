"""
Gamification system for QuestFit

- XP and leveling (pure progression engine)
- Workout streaks
- Achievement badges derived from character stats
"""

from src.gamification.xp_system import XPResult, apply_xp, xp_threshold_for_level, level_progress
from src.gamification.streak_system import StreakResult, calculate_streak
from src.gamification.achievement_system import (
    BADGES,
    evaluate_badges,
    get_badge_summary,
    newly_unlocked_badges,
)

__all__ = [
    "XPResult",
    "apply_xp",
    "xp_threshold_for_level",
    "level_progress",
    "StreakResult",
    "calculate_streak",
    "BADGES",
    "evaluate_badges",
    "get_badge_summary",
    "newly_unlocked_badges",
]
