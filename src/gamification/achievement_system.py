"""
Achievement System

Badges are derived from the character's stats; nothing is stored per badge.
A badge is unlocked once the stat it measures reaches its threshold:
- level: character level
- streak: current workout streak
- quests: total quests completed

Because level and quests_completed never decrease, level and quest badges
stay unlocked once earned. Streak badges follow the current streak.
"""

from typing import Any, List, Mapping
import logging

from src.models.achievement import (
    AchievementTier,
    Badge,
    BadgeCriteria,
    BadgeStatus,
)

logger = logging.getLogger(__name__)


BADGES: List[Badge] = [
    Badge(
        id="first_quest",
        name="First Steps",
        description="Completed your very first quest",
        unlock_criteria="Complete 1 quest",
        criteria_type=BadgeCriteria.QUESTS,
        criteria_value=1,
        tier=AchievementTier.BRONZE,
    ),
    Badge(
        id="level_5",
        name="Rising Hero",
        description="Reached level 5",
        unlock_criteria="Reach level 5",
        criteria_type=BadgeCriteria.LEVEL,
        criteria_value=5,
        tier=AchievementTier.BRONZE,
    ),
    Badge(
        id="streak_7",
        name="Week Warrior",
        description="Worked out 7 days in a row",
        unlock_criteria="Keep a 7-day streak",
        criteria_type=BadgeCriteria.STREAK,
        criteria_value=7,
        tier=AchievementTier.SILVER,
    ),
    Badge(
        id="quests_10",
        name="Quest Seeker",
        description="Completed 10 quests",
        unlock_criteria="Complete 10 quests",
        criteria_type=BadgeCriteria.QUESTS,
        criteria_value=10,
        tier=AchievementTier.SILVER,
    ),
    Badge(
        id="level_10",
        name="Seasoned Athlete",
        description="Reached level 10",
        unlock_criteria="Reach level 10",
        criteria_type=BadgeCriteria.LEVEL,
        criteria_value=10,
        tier=AchievementTier.GOLD,
    ),
    Badge(
        id="streak_30",
        name="Unstoppable",
        description="Worked out 30 days in a row",
        unlock_criteria="Keep a 30-day streak",
        criteria_type=BadgeCriteria.STREAK,
        criteria_value=30,
        tier=AchievementTier.GOLD,
    ),
    Badge(
        id="quests_50",
        name="Legend of the Gym",
        description="Completed 50 quests",
        unlock_criteria="Complete 50 quests",
        criteria_type=BadgeCriteria.QUESTS,
        criteria_value=50,
        tier=AchievementTier.PLATINUM,
    ),
]


_STAT_FOR_CRITERIA = {
    BadgeCriteria.LEVEL: "level",
    BadgeCriteria.STREAK: "streak",
    BadgeCriteria.QUESTS: "quests_completed",
}


def _stat(character: Any, key: str) -> int:
    if isinstance(character, Mapping):
        return int(character.get(key) or 0)
    return int(getattr(character, key, 0) or 0)


def is_badge_unlocked(badge: Badge, character: Any) -> bool:
    """Check a single badge against a character"""
    key = _STAT_FOR_CRITERIA.get(badge.criteria_type)
    if key is None:
        return False
    return _stat(character, key) >= badge.criteria_value


def evaluate_badges(character: Any, badges: List[Badge] = BADGES) -> List[BadgeStatus]:
    """
    Attach unlock status to every badge in the catalog

    Args:
        character: Character model or row dict
        badges: badge catalog (defaults to BADGES)

    Returns:
        List of BadgeStatus in catalog order
    """
    return [
        BadgeStatus(**badge.model_dump(), is_unlocked=is_badge_unlocked(badge, character))
        for badge in badges
    ]


def newly_unlocked_badges(before: Any, after: Any, badges: List[Badge] = BADGES) -> List[Badge]:
    """Badges locked for `before` but unlocked for `after` (e.g. around a quest)"""
    unlocked = [
        badge for badge in badges
        if not is_badge_unlocked(badge, before) and is_badge_unlocked(badge, after)
    ]
    if unlocked:
        logger.info(f"Unlocked badges: {', '.join(b.id for b in unlocked)}")
    return unlocked


def get_badge_summary(character: Any) -> dict:
    """Badge list plus earned/total counts"""
    statuses = evaluate_badges(character)
    earned = sum(1 for status in statuses if status.is_unlocked)
    return {
        "badges": statuses,
        "earned": earned,
        "total": len(statuses),
    }
