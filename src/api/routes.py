"""API routes for QuestFit"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api.models import (
    RegisterRequest, LoginRequest, AuthResult, ProfileNameRequest,
    OnboardingRequest, CharacterPatchRequest, XPRequest, StreakRequest,
    QuestCompleteRequest, CharacterResponse, AchievementResponse,
    HealthCheckResponse,
)
from src.api.auth import get_app_state, get_character_state, new_app_state
from src.api.middleware import limiter
from src.config import APP_VERSION
from src.db.connection import db
from src.gamification.xp_system import level_progress
from src.models.quest import DAILY_QUEST, Quest, get_quest
from src.services.app_state import AppState
from src.validators import ProfileInput, safe_validate

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_FOR_ERROR = {
    "ValidationError": status.HTTP_400_BAD_REQUEST,
    "RecordNotFoundError": status.HTTP_404_NOT_FOUND,
    "ConcurrentUpdateError": status.HTTP_409_CONFLICT,
    "ConnectionError": status.HTTP_502_BAD_GATEWAY,
    "QueryError": status.HTTP_502_BAD_GATEWAY,
    "ExternalAPIError": status.HTTP_502_BAD_GATEWAY,
}


def _raise_for(result: Dict[str, Any]) -> None:
    """Turn a failed service result into an HTTPException"""
    if result.get('success'):
        return
    code = _STATUS_FOR_ERROR.get(result.get('error_type'), status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail=result.get('error') or "Request failed")


def _character_response(state: AppState, result: Dict[str, Any]) -> CharacterResponse:
    character = state.character
    return CharacterResponse(
        character=character,
        level_progress=level_progress(character),
        leveled_up=result.get('leveled_up', False),
        levels_gained=result.get('levels_gained', 0),
        streak_message=result.get('streak_message'),
        badges_unlocked=result.get('badges_unlocked', []),
    )


def _require_character(state: AppState) -> None:
    if state.character is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No character found. Complete onboarding first."
        )


# ==========================================
# Auth
# ==========================================

@router.post("/api/v1/auth/register", response_model=AuthResult)
@limiter.limit("5/minute")
async def register(request: Request, payload: RegisterRequest):
    """Create an account (Rate limit: 5/minute)"""
    state = new_app_state()
    result = await state.register(payload.email, payload.password, payload.name)

    if not result['success']:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result['error'])

    session = result.get('session')
    return AuthResult(
        success=True,
        message=result.get('error'),
        pending_confirmation=result.get('pending_confirmation', False),
        user=result.get('user'),
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
        expires_at=session.expires_at if session else None,
    )


@router.post("/api/v1/auth/login", response_model=AuthResult)
@limiter.limit("10/minute")
async def login(request: Request, payload: LoginRequest):
    """Sign in (Rate limit: 10/minute)"""
    state = new_app_state()
    result = await state.login(payload.email, payload.password)

    if not result['success']:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result['error'])

    session = result['session']
    return AuthResult(
        success=True,
        user=session.user,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
    )


@router.post("/api/v1/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(state: AppState = Depends(get_app_state)):
    """Revoke the current session"""
    await state.logout()


@router.patch("/api/v1/auth/profile")
async def update_profile(request: ProfileNameRequest, state: AppState = Depends(get_app_state)):
    """Update the display name stored with the identity provider"""
    result = await state.auth.update_profile(name=request.name.strip())
    if not result['success']:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result['error'])
    return {"user": result['user']}


# ==========================================
# Character
# ==========================================

@router.post("/api/v1/character", response_model=CharacterResponse)
async def onboard(request: OnboardingRequest, state: AppState = Depends(get_app_state)):
    """Save onboarding answers (creates the character when missing)"""
    profile, error = safe_validate(ProfileInput, **request.model_dump())
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    result = await state.onboard(profile)
    _raise_for(result)
    return _character_response(state, result)


@router.get("/api/v1/character", response_model=CharacterResponse)
async def get_character(state: AppState = Depends(get_character_state)):
    """Current user's character"""
    _require_character(state)
    return _character_response(state, {})


@router.patch("/api/v1/character", response_model=CharacterResponse)
async def patch_character(request: CharacterPatchRequest, state: AppState = Depends(get_character_state)):
    """Edit profile fields"""
    _require_character(state)
    result = await state.update_character(request.model_dump(exclude_unset=True))
    _raise_for(result)
    return _character_response(state, result)


@router.post("/api/v1/character/xp", response_model=CharacterResponse)
async def add_xp(request: XPRequest, state: AppState = Depends(get_character_state)):
    """Award XP; negative amounts are rejected"""
    _require_character(state)
    result = await state.increment_xp(request.amount)
    _raise_for(result)
    return _character_response(state, result)


@router.post("/api/v1/character/streak", response_model=CharacterResponse)
async def record_workout(request: StreakRequest, state: AppState = Depends(get_character_state)):
    """Record a workout for the streak (or set it explicitly)"""
    _require_character(state)
    result = await state.record_workout(activity_at=request.activity_at, streak=request.streak)
    _raise_for(result)
    return _character_response(state, result)


# ==========================================
# Quests & achievements
# ==========================================

@router.get("/api/v1/quests/daily", response_model=Quest)
async def daily_quest():
    """Today's suggested quest"""
    return DAILY_QUEST


@router.post("/api/v1/quests/{quest_id}/complete", response_model=CharacterResponse)
async def complete_quest(
    quest_id: str,
    request: Optional[QuestCompleteRequest] = None,
    state: AppState = Depends(get_character_state)
):
    """Complete a quest: +1 quest and its XP reward, applied together"""
    _require_character(state)
    request = request or QuestCompleteRequest()
    if get_quest(quest_id) is None and request.xp_reward is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown quest: {quest_id}")

    result = await state.complete_quest(quest_id, request.xp_reward)
    _raise_for(result)
    return _character_response(state, result)


@router.get("/api/v1/achievements", response_model=AchievementResponse)
async def achievements(state: AppState = Depends(get_character_state)):
    """Badges with unlock status for the current character"""
    _require_character(state)
    return AchievementResponse(**state.badges())


# ==========================================
# Health
# ==========================================

@router.get("/api/health", response_model=HealthCheckResponse)
async def health_check():
    """Liveness plus store connectivity"""
    database = "connected" if await db.ping() else "disconnected"
    return HealthCheckResponse(
        status="healthy" if database == "connected" else "degraded",
        timestamp=datetime.now(),
        version=APP_VERSION,
        database=database,
    )
