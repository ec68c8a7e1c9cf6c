"""Pydantic models for API request/response validation"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from datetime import datetime

from src.gamification.xp_system import MAX_XP_AWARD
from src.models.achievement import BadgeStatus, Badge
from src.models.auth import AuthUser
from src.models.character import Character, Gender
from src.validators import (
    MIN_NAME_LENGTH, MIN_HEIGHT_CM, MAX_HEIGHT_CM,
    MIN_WEIGHT_KG, MAX_WEIGHT_KG, MAX_GOAL_LENGTH,
)


class RegisterRequest(BaseModel):
    """Sign-up form"""
    email: str = Field(default="", description="Account email")
    password: str = Field(default="", description="Password (min 6 characters)")
    name: str = Field(default="", description="Display name (min 2 characters)")


class LoginRequest(BaseModel):
    """Sign-in form"""
    email: str = Field(default="", description="Account email")
    password: str = Field(default="", description="Password")


class AuthResult(BaseModel):
    """Outcome of register/login"""
    success: bool
    message: Optional[str] = None
    pending_confirmation: bool = False
    user: Optional[AuthUser] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class ProfileNameRequest(BaseModel):
    """Update display name on the identity provider"""
    name: str = Field(..., min_length=MIN_NAME_LENGTH, description="New display name")


class OnboardingRequest(BaseModel):
    """Onboarding answers"""
    gender: Literal["male", "female"] = "male"
    height: Optional[int] = Field(default=None, description="Height in cm")
    weight: Optional[int] = Field(default=None, description="Weight in kg")
    goal: Optional[str] = Field(default=None, description="Fitness goal")


class CharacterPatchRequest(BaseModel):
    """Direct profile edits, bounded like onboarding"""
    name: Optional[str] = Field(default=None, min_length=MIN_NAME_LENGTH)
    gender: Optional[Gender] = None
    height: Optional[int] = Field(default=None, ge=MIN_HEIGHT_CM, le=MAX_HEIGHT_CM, description="Height in cm")
    weight: Optional[int] = Field(default=None, ge=MIN_WEIGHT_KG, le=MAX_WEIGHT_KG, description="Weight in kg")
    goal: Optional[str] = Field(default=None, max_length=MAX_GOAL_LENGTH)


class XPRequest(BaseModel):
    """Award XP"""
    amount: int = Field(..., le=MAX_XP_AWARD, description="XP to add (non-negative)")


class StreakRequest(BaseModel):
    """Record a workout; `streak` overrides the computed value"""
    streak: Optional[int] = Field(default=None, description="Explicit streak value")
    activity_at: Optional[datetime] = Field(default=None, description="When the workout happened")


class QuestCompleteRequest(BaseModel):
    """Optional reward override for quest completion"""
    xp_reward: Optional[int] = Field(default=None, ge=0, le=MAX_XP_AWARD, description="XP reward (defaults to the quest's)")


class CharacterResponse(BaseModel):
    """Character plus progression details"""
    character: Character
    level_progress: float
    leveled_up: bool = False
    levels_gained: int = 0
    streak_message: Optional[str] = None
    badges_unlocked: List[Badge] = Field(default_factory=list)


class AchievementResponse(BaseModel):
    """Badge catalog with unlock status"""
    badges: List[BadgeStatus]
    earned: int
    total: int


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime
    version: str
    database: str
