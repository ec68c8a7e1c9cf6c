"""Achievement badge models for gamification"""
from enum import Enum
from pydantic import BaseModel


class BadgeCriteria(str, Enum):
    """Character stat a badge is measured against"""
    LEVEL = "level"
    STREAK = "streak"
    QUESTS = "quests"


class AchievementTier(str, Enum):
    """Achievement tiers/difficulty levels"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class Badge(BaseModel):
    """Badge definition"""
    id: str
    name: str
    description: str
    unlock_criteria: str  # shown while the badge is locked
    criteria_type: BadgeCriteria
    criteria_value: int
    tier: AchievementTier


class BadgeStatus(Badge):
    """Badge definition plus whether the character has earned it"""
    is_unlocked: bool = False
