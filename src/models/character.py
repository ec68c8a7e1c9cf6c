"""Character-related Pydantic models"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.validators import (
    MIN_NAME_LENGTH, MIN_HEIGHT_CM, MAX_HEIGHT_CM,
    MIN_WEIGHT_KG, MAX_WEIGHT_KG, MAX_GOAL_LENGTH,
)


class Gender(str, Enum):
    """Character gender (drives avatar art)"""
    MALE = "male"
    FEMALE = "female"


# Defaults for a freshly created character
STARTING_LEVEL = 1
STARTING_XP_TO_NEXT_LEVEL = 100


class Character(BaseModel):
    """Per-user gamification profile (one row in `characters`)"""
    id: str
    user_id: str
    name: str
    level: int = Field(default=STARTING_LEVEL, ge=1)
    xp: int = Field(default=0, ge=0)
    xp_to_next_level: int = Field(default=STARTING_XP_TO_NEXT_LEVEL, gt=0)
    total_xp: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    last_workout: Optional[datetime] = None
    quests_completed: int = Field(default=0, ge=0)
    gender: Gender = Gender.MALE
    height: Optional[int] = None  # cm
    weight: Optional[int] = None  # kg
    goal: Optional[str] = None
    version: int = Field(default=1, ge=1)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CharacterUpdate(BaseModel):
    """Partial character update; only fields that are set get written"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    level: Optional[int] = Field(default=None, ge=1)
    xp: Optional[int] = Field(default=None, ge=0)
    xp_to_next_level: Optional[int] = Field(default=None, gt=0)
    total_xp: Optional[int] = Field(default=None, ge=0)
    streak: Optional[int] = Field(default=None, ge=0)
    last_workout: Optional[datetime] = None
    quests_completed: Optional[int] = Field(default=None, ge=0)
    gender: Optional[Gender] = None
    height: Optional[int] = Field(default=None, ge=MIN_HEIGHT_CM, le=MAX_HEIGHT_CM)
    weight: Optional[int] = Field(default=None, ge=MIN_WEIGHT_KG, le=MAX_WEIGHT_KG)
    goal: Optional[str] = Field(default=None, max_length=MAX_GOAL_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        trimmed = (v or "").strip()
        if len(trimmed) < MIN_NAME_LENGTH:
            raise ValueError(f"Name must be at least {MIN_NAME_LENGTH} characters long")
        return trimmed

    def to_fields(self) -> dict:
        """Columns explicitly provided by the caller"""
        fields = self.model_dump(exclude_unset=True)
        if isinstance(fields.get("gender"), Gender):
            fields["gender"] = fields["gender"].value
        return fields
