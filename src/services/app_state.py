"""
AppState - explicit application state for the client

Holds the signed-in user and their character so screens (or API handlers)
read one object instead of global providers.

Lifecycle:
- initialize(): restore the stored session, then load the character
- teardown(): sign out and clear everything
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, Union

from src.gamification.achievement_system import get_badge_summary
from src.models.auth import AuthUser, Session
from src.models.character import Character, CharacterUpdate
from src.models.quest import Quest, get_quest
from src.validators import ProfileInput

logger = logging.getLogger(__name__)

DEFAULT_CHARACTER_NAME = "Adventurer"


class AppState:
    """
    Application-wide state: session, user, character, loading flag, last error.

    Every action returns the service result dict and mirrors its outcome
    into `error` (the message a screen would show in an alert).
    """

    def __init__(self, auth_service, character_service):
        self.auth = auth_service
        self.characters = character_service

        self.character: Optional[Character] = None
        self.is_loading: bool = False
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # Auth state
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[Session]:
        return self.auth.session

    @property
    def user(self) -> Optional[AuthUser]:
        return self.auth.session.user if self.auth.session else None

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated

    async def initialize(self) -> None:
        """App start: restore the stored session and load its character"""
        self.is_loading = True
        try:
            await self.auth.restore_session()
            await self.load_character()
        finally:
            self.is_loading = False

    async def teardown(self) -> None:
        """Logout: clear character state and the session"""
        self.is_loading = True
        try:
            await self.reset_character()
            await self.auth.logout()
        finally:
            self.is_loading = False
        logger.info("Application state cleared")

    async def register(self, email: str, password: str, name: str) -> Dict[str, Any]:
        self.is_loading = True
        try:
            result = await self.auth.register(email, password, name)
        finally:
            self.is_loading = False

        if result['success'] and self.is_authenticated:
            await self.load_character()
        return result

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        self.is_loading = True
        try:
            result = await self.auth.login(email, password)
        finally:
            self.is_loading = False

        if result['success']:
            await self.load_character()
        return result

    async def logout(self) -> None:
        await self.teardown()

    # ------------------------------------------------------------------
    # Character state
    # ------------------------------------------------------------------

    async def load_character(self) -> None:
        """Fetch the current user's character (None when signed out or not onboarded)"""
        user = self.user
        if user is None:
            self.character = None
            return

        self.is_loading = True
        self.error = None
        try:
            result = await self.characters.get_character_by_user_id(user.id)
        finally:
            self.is_loading = False

        if not result['success']:
            logger.error(f"Failed to load character: {result.get('error')}")
            self.error = 'Failed to load character data'
            return

        self.character = result['character']
        if self.character is not None:
            await self.auth.sessions.save_character(self.character.model_dump(mode="json"))

    async def update_character(self, updates: Union[CharacterUpdate, Dict[str, Any]]) -> Dict[str, Any]:
        if self.character is None:
            return self._missing('No character found to update')

        result = await self.characters.update_character(self.character.id, updates)
        return await self._apply(result, 'Failed to update character')

    async def increment_xp(self, amount: int) -> Dict[str, Any]:
        if self.character is None:
            return self._missing('No character found to update XP')

        result = await self.characters.add_xp(self.character.id, amount)
        return await self._apply(result, 'Failed to update XP')

    async def record_workout(
        self,
        activity_at: Optional[datetime] = None,
        streak: Optional[int] = None
    ) -> Dict[str, Any]:
        """Count a workout toward the streak; `streak` sets the value directly"""
        if self.character is None:
            return self._missing('No character found to update streak')

        result = await self.characters.update_streak(
            self.character.id, new_streak=streak, activity_at=activity_at
        )
        return await self._apply(result, 'Failed to update streak')

    async def complete_quest(
        self,
        quest: Union[Quest, str],
        xp_reward: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Complete a quest by object or id; xp_reward overrides the quest's reward.
        """
        if self.character is None:
            return self._missing('No character found to complete quest')

        if isinstance(quest, str):
            resolved = get_quest(quest)
            if resolved is None and xp_reward is None:
                return self._missing(f'Unknown quest: {quest}')
            reward = xp_reward if xp_reward is not None else resolved.xp_reward
        else:
            reward = xp_reward if xp_reward is not None else quest.xp_reward

        result = await self.characters.complete_quest(self.character.id, reward)
        return await self._apply(result, 'Failed to complete quest')

    async def onboard(self, profile: ProfileInput) -> Dict[str, Any]:
        """Save onboarding answers, creating the character if registration did not"""
        user = self.user
        if user is None:
            return self._missing('User information not found. Please log in again.')

        result = await self.characters.setup_profile(user.id, user.name or DEFAULT_CHARACTER_NAME, profile)
        return await self._apply(result, 'Failed to save your profile. Please try again.')

    async def reset_character(self) -> None:
        self.character = None
        self.error = None
        await self.auth.sessions.clear_character()

    def badges(self) -> Dict[str, Any]:
        """Badge list with unlock status for the current character"""
        if self.character is None:
            return {'badges': [], 'earned': 0, 'total': 0}
        return get_badge_summary(self.character)

    # ------------------------------------------------------------------

    def _missing(self, message: str) -> Dict[str, Any]:
        self.error = message
        return {'success': False, 'error': message, 'error_type': 'RecordNotFoundError'}

    async def _apply(self, result: Dict[str, Any], fallback: str) -> Dict[str, Any]:
        if not result['success']:
            logger.error(f"{fallback}: {result.get('error')}")
            self.error = result.get('error') or fallback
            return result

        self.error = None
        if result.get('character') is not None:
            self.character = result['character']
            await self.auth.sessions.save_character(self.character.model_dump(mode="json"))
        return result
