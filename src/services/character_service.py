"""
CharacterService - Character Business Logic

Creates and loads characters, applies XP through the progression engine,
tracks workout streaks and completes quests. All writes after a read are
conditional on the character's version, so two sessions cannot silently
overwrite each other's progress.
"""

import logging
from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone
from pydantic import ValidationError as PydanticValidationError

from src.db import queries
from src.exceptions import (
    QuestFitError,
    ConcurrentUpdateError,
    RecordNotFoundError,
    wrap_external_exception,
)
from src.gamification.xp_system import apply_xp, validate_xp_amount
from src.gamification.streak_system import calculate_streak
from src.gamification.achievement_system import newly_unlocked_badges
from src.models.character import Character, CharacterUpdate, Gender
from src.validators import ProfileInput, format_validation_error

logger = logging.getLogger(__name__)


def _failure(error: Exception, operation: str, fallback: str, **context) -> Dict[str, Any]:
    """Convert any exception into the uniform failed-result shape"""
    wrapped = wrap_external_exception(error, operation=operation, context=context or None)
    message = fallback if type(wrapped) is QuestFitError else wrapped.user_message
    return {'success': False, 'error': message or fallback, 'error_type': type(wrapped).__name__}


class CharacterService:
    """
    Service for character management.

    Responsibilities:
    - Character lifecycle (create at registration/onboarding, load, update)
    - XP awards and level-ups
    - Workout streak updates
    - Quest completion (counter + XP in one write)
    """

    def __init__(self, db_connection=None):
        """
        Initialize CharacterService.

        Args:
            db_connection: Database connection instance
        """
        self.db = db_connection

    async def create_character(
        self,
        user_id: str,
        name: str,
        gender: Union[Gender, str] = Gender.MALE
    ) -> Dict[str, Any]:
        """
        Create a new character with starting stats.

        Returns:
            dict: {'success': bool, 'character': Character, 'error': str}
        """
        try:
            gender_value = Gender(gender).value
            row = await queries.create_character(user_id, name.strip(), gender_value)
            character = Character.model_validate(row)

            logger.info(f"Created character {character.id} for user {user_id}")
            return {'success': True, 'character': character}

        except Exception as e:
            logger.error(f"Error creating character for user {user_id}: {e}", exc_info=True)
            return _failure(e, "create_character", "Failed to create character", user_id=user_id)

    async def get_character_by_user_id(self, user_id: str) -> Dict[str, Any]:
        """
        Load the character owned by a user.

        A user without a character is not an error: the result is
        successful with character=None.
        """
        try:
            row = await queries.get_character_by_user_id(user_id)
            if row is None:
                logger.info(f"No character yet for user {user_id}")
                return {'success': True, 'character': None}

            return {'success': True, 'character': Character.model_validate(row)}

        except Exception as e:
            logger.error(f"Error fetching character for user {user_id}: {e}", exc_info=True)
            return _failure(e, "get_character_by_user_id", "Failed to fetch character", user_id=user_id)

    async def update_character(
        self,
        character_id: str,
        updates: Union[CharacterUpdate, Dict[str, Any]],
        expected_version: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Write a partial update.

        Args:
            character_id: Character UUID
            updates: CharacterUpdate or plain dict of fields
            expected_version: only write if the stored version matches

        Returns:
            dict: {'success': bool, 'character': Character, 'error': str}
        """
        try:
            if not isinstance(updates, CharacterUpdate):
                updates = CharacterUpdate(**updates)
        except PydanticValidationError as e:
            return {'success': False, 'error': format_validation_error(e), 'error_type': 'ValidationError'}

        try:
            fields = updates.to_fields()
            row = await self._write(character_id, fields, expected_version, "update_character")
            return {'success': True, 'character': Character.model_validate(row)}

        except Exception as e:
            logger.error(f"Error updating character {character_id}: {e}", exc_info=True)
            return _failure(e, "update_character", "Failed to update character", character_id=character_id)

    async def add_xp(self, character_id: str, amount: int) -> Dict[str, Any]:
        """
        Award XP and settle any level-ups.

        Returns:
            dict: {
                'success': bool,
                'character': Character,
                'leveled_up': bool,
                'levels_gained': int,
                'error': str
            }
        """
        try:
            validate_xp_amount(amount)
            current = await self._load(character_id, "add_xp")

            result = apply_xp(current, amount)
            row = await self._write(
                character_id, result.to_update(), current.version, "add_xp"
            )
            character = Character.model_validate(row)

            logger.info(
                f"Awarded {amount} XP to character {character_id}. "
                f"Total: {character.total_xp} XP, Level: {character.level}"
            )
            if result.leveled_up:
                logger.info(f"Character {character_id} leveled up from {current.level} to {character.level}!")

            return {
                'success': True,
                'character': character,
                'leveled_up': result.leveled_up,
                'levels_gained': result.levels_gained,
            }

        except Exception as e:
            logger.error(f"Error adding XP to character {character_id}: {e}", exc_info=True)
            return _failure(e, "add_xp", "Failed to add XP", character_id=character_id)

    async def update_streak(
        self,
        character_id: str,
        new_streak: Optional[int] = None,
        activity_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Record a workout for streak purposes.

        With new_streak the value is written as given (manual correction);
        otherwise it is derived from last_workout and activity_at.
        """
        activity_at = activity_at or datetime.now(timezone.utc)
        try:
            if new_streak is not None:
                if isinstance(new_streak, bool) or not isinstance(new_streak, int) or new_streak < 0:
                    return {'success': False, 'error': 'Streak must be a non-negative whole number', 'error_type': 'ValidationError'}
                result = await self.update_character(
                    character_id,
                    CharacterUpdate(streak=new_streak, last_workout=activity_at)
                )
                return {**result, 'streak_message': None}

            current = await self._load(character_id, "update_streak")
            streak = calculate_streak(current.streak, current.last_workout, activity_at)

            if not streak.counted:
                return {'success': True, 'character': current, 'streak_message': streak.message}

            row = await self._write(
                character_id,
                {'streak': streak.streak, 'last_workout': streak.last_workout},
                current.version,
                "update_streak"
            )
            return {
                'success': True,
                'character': Character.model_validate(row),
                'streak_message': streak.message,
                'milestone_reached': streak.milestone_reached,
            }

        except Exception as e:
            logger.error(f"Error updating streak for character {character_id}: {e}", exc_info=True)
            return _failure(e, "update_streak", "Failed to update streak", character_id=character_id)

    async def complete_quest(self, character_id: str, xp_reward: int) -> Dict[str, Any]:
        """
        Complete a quest: quests_completed + 1 and the XP reward, in one write.

        The counter and XP are committed together or not at all. A concurrent
        change to the character makes the write fail instead of overwriting it.

        Returns:
            dict: {
                'success': bool,
                'character': Character,
                'leveled_up': bool,
                'badges_unlocked': list[Badge],
                'error': str
            }
        """
        try:
            validate_xp_amount(xp_reward)
            current = await self._load(character_id, "complete_quest")

            result = apply_xp(current, xp_reward)
            fields = result.to_update()
            fields['quests_completed'] = current.quests_completed + 1

            row = await self._write(character_id, fields, current.version, "complete_quest")
            character = Character.model_validate(row)
            badges = newly_unlocked_badges(current, character)

            logger.info(
                f"Quest completed for character {character_id}: "
                f"+{xp_reward} XP, quests={character.quests_completed}, level={character.level}"
            )

            return {
                'success': True,
                'character': character,
                'leveled_up': result.leveled_up,
                'levels_gained': result.levels_gained,
                'badges_unlocked': badges,
            }

        except Exception as e:
            logger.error(f"Error completing quest for character {character_id}: {e}", exc_info=True)
            return _failure(e, "complete_quest", "Failed to complete quest", character_id=character_id)

    async def setup_profile(
        self,
        user_id: str,
        name: str,
        profile: ProfileInput
    ) -> Dict[str, Any]:
        """
        Onboarding: make sure the user has a character, then save profile fields.

        A character created here is kept even if the profile write fails.
        """
        loaded = await self.get_character_by_user_id(user_id)
        if not loaded['success']:
            return loaded

        character = loaded['character']
        if character is None:
            created = await self.create_character(user_id, name, profile.gender)
            if not created['success']:
                return created
            character = created['character']

        return await self.update_character(
            character.id,
            CharacterUpdate(
                gender=profile.gender,
                height=profile.height,
                weight=profile.weight,
                goal=profile.goal,
            )
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self, character_id: str, operation: str) -> Character:
        row = await queries.get_character_by_id(character_id)
        if row is None:
            raise RecordNotFoundError(
                message=f"Character {character_id} not found",
                record_type="Character",
                record_id=character_id,
                operation=operation,
            )
        return Character.model_validate(row)

    async def _write(
        self,
        character_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int],
        operation: str
    ) -> dict:
        row = await queries.update_character(character_id, fields, expected_version=expected_version)
        if row is not None:
            return row

        if expected_version is not None and await queries.get_character_by_id(character_id) is not None:
            raise ConcurrentUpdateError(
                message=f"Character {character_id} changed since version {expected_version}",
                record_id=character_id,
                expected_version=expected_version,
                operation=operation,
            )
        raise RecordNotFoundError(
            message=f"Character {character_id} not found",
            record_type="Character",
            record_id=character_id,
            operation=operation,
        )
