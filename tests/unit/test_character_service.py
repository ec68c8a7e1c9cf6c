"""
Unit tests for CharacterService

Tests character lifecycle, XP awards, streaks and quest completion.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import psycopg

from src.models.character import Character, CharacterUpdate, Gender
from src.services.character_service import CharacterService
from src.validators import ProfileInput


@pytest.fixture
def service():
    """CharacterService with no real database"""
    return CharacterService(db_connection=None)


def _echo_update(base):
    """update_character mock that applies fields to `base` and bumps the version"""
    async def _update(character_id, fields, expected_version=None):
        row = dict(base)
        row.update(fields)
        row["version"] = base["version"] + 1
        return row
    return AsyncMock(side_effect=_update)


# ============================================================================
# Lifecycle
# ============================================================================

@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_create_character(mock_queries, service, make_character_row, test_user_id):
    """New characters start at level 1 with 0 XP"""
    mock_queries.create_character = AsyncMock(return_value=make_character_row(name="Ana", gender="female"))

    result = await service.create_character(test_user_id, "  Ana ", Gender.FEMALE)

    assert result['success'] is True
    assert result['character'].level == 1
    assert result['character'].xp_to_next_level == 100
    mock_queries.create_character.assert_awaited_once_with(test_user_id, "Ana", "female")


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_create_character_db_failure(mock_queries, service, test_user_id):
    """Store failures come back as a failed result"""
    mock_queries.create_character = AsyncMock(side_effect=psycopg.OperationalError("down"))

    result = await service.create_character(test_user_id, "Ana")

    assert result['success'] is False
    assert result['error_type'] == 'ConnectionError'


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_get_character_absent_is_success(mock_queries, service, test_user_id):
    """A user without a character is not an error"""
    mock_queries.get_character_by_user_id = AsyncMock(return_value=None)

    result = await service.get_character_by_user_id(test_user_id)

    assert result == {'success': True, 'character': None}


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_get_character_found(mock_queries, service, make_character_row, test_user_id):
    mock_queries.get_character_by_user_id = AsyncMock(return_value=make_character_row(level=4))

    result = await service.get_character_by_user_id(test_user_id)

    assert result['success'] is True
    assert isinstance(result['character'], Character)
    assert result['character'].level == 4


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_get_character_query_error(mock_queries, service, test_user_id):
    mock_queries.get_character_by_user_id = AsyncMock(side_effect=psycopg.Error("bad sql"))

    result = await service.get_character_by_user_id(test_user_id)

    assert result['success'] is False
    assert result['error_type'] == 'QueryError'


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_character_writes_only_set_fields(mock_queries, service, make_character_row, test_character_id):
    base = make_character_row()
    mock_queries.update_character = _echo_update(base)

    result = await service.update_character(test_character_id, {'goal': 'Run a 10k'})

    assert result['success'] is True
    assert result['character'].goal == 'Run a 10k'
    mock_queries.update_character.assert_awaited_once_with(
        test_character_id, {'goal': 'Run a 10k'}, expected_version=None
    )


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_character_rejects_unknown_fields(mock_queries, service, test_character_id):
    """Unknown columns never reach the store"""
    mock_queries.update_character = AsyncMock()

    result = await service.update_character(test_character_id, {'is_admin': True})

    assert result['success'] is False
    assert result['error_type'] == 'ValidationError'
    mock_queries.update_character.assert_not_called()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_character_enforces_profile_bounds(mock_queries, service, test_character_id):
    """Direct edits are held to the same limits as onboarding"""
    mock_queries.update_character = AsyncMock()

    result = await service.update_character(test_character_id, {'height': -5, 'weight': 0})

    assert result['success'] is False
    assert result['error_type'] == 'ValidationError'
    assert result['error'].startswith('height:')
    mock_queries.update_character.assert_not_called()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_character_rejects_blank_name(mock_queries, service, test_character_id):
    mock_queries.update_character = AsyncMock()

    result = await service.update_character(test_character_id, {'name': '   '})

    assert result['error'] == "Name must be at least 2 characters long"
    mock_queries.update_character.assert_not_called()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_character_missing(mock_queries, service, test_character_id):
    mock_queries.update_character = AsyncMock(return_value=None)
    mock_queries.get_character_by_id = AsyncMock(return_value=None)

    result = await service.update_character(test_character_id, CharacterUpdate(name="Zed"))

    assert result['success'] is False
    assert result['error_type'] == 'RecordNotFoundError'


# ============================================================================
# XP
# ============================================================================

@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_add_xp_multi_level(mock_queries, service, make_character_row, test_character_id):
    """90 XP + 250 lands at level 3 with 40 XP"""
    base = make_character_row(xp=90, total_xp=90)
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = _echo_update(base)

    result = await service.add_xp(test_character_id, 250)

    assert result['success'] is True
    assert result['leveled_up'] is True
    assert result['levels_gained'] == 2
    character = result['character']
    assert (character.level, character.xp, character.xp_to_next_level, character.total_xp) == (3, 40, 300, 340)

    _, kwargs = mock_queries.update_character.call_args
    assert kwargs['expected_version'] == base['version']


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_add_xp_negative_rejected_before_io(mock_queries, service, test_character_id):
    mock_queries.get_character_by_id = AsyncMock()
    mock_queries.update_character = AsyncMock()

    result = await service.add_xp(test_character_id, -10)

    assert result['success'] is False
    assert result['error'] == "XP amount cannot be negative"
    assert result['error_type'] == 'ValidationError'
    mock_queries.get_character_by_id.assert_not_called()
    mock_queries.update_character.assert_not_called()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_add_xp_oversized_rejected_before_io(mock_queries, service, test_character_id):
    mock_queries.get_character_by_id = AsyncMock()

    result = await service.add_xp(test_character_id, 10**30)

    assert result['success'] is False
    assert result['error_type'] == 'ValidationError'
    mock_queries.get_character_by_id.assert_not_called()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_add_xp_character_missing(mock_queries, service, test_character_id):
    mock_queries.get_character_by_id = AsyncMock(return_value=None)

    result = await service.add_xp(test_character_id, 10)

    assert result['success'] is False
    assert result['error_type'] == 'RecordNotFoundError'


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_add_xp_stale_version_conflicts(mock_queries, service, make_character_row, test_character_id):
    """A concurrent write makes the conditional update miss"""
    base = make_character_row(version=3)
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = AsyncMock(return_value=None)

    result = await service.add_xp(test_character_id, 10)

    assert result['success'] is False
    assert result['error_type'] == 'ConcurrentUpdateError'
    assert mock_queries.update_character.await_count == 1


# ============================================================================
# Streaks
# ============================================================================

@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_streak_next_day(mock_queries, service, make_character_row, test_character_id):
    now = datetime(2024, 6, 15, 8, 0)
    base = make_character_row(streak=2, last_workout=now - timedelta(days=1))
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = _echo_update(base)

    result = await service.update_streak(test_character_id, activity_at=now)

    assert result['success'] is True
    assert result['character'].streak == 3
    assert result['streak_message'] == "Streak continues! Day 3"


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_streak_same_day_no_write(mock_queries, service, make_character_row, test_character_id):
    now = datetime(2024, 6, 15, 20, 0)
    base = make_character_row(streak=2, last_workout=now.replace(hour=7))
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = AsyncMock()

    result = await service.update_streak(test_character_id, activity_at=now)

    assert result['success'] is True
    assert result['character'].streak == 2
    mock_queries.update_character.assert_not_called()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_streak_mixed_offsets(mock_queries, service, make_character_row, test_character_id):
    """A UTC-stored evening workout and a local next-day workout are consecutive"""
    stored = datetime(2026, 1, 2, 4, 30, tzinfo=timezone.utc)
    base = make_character_row(streak=3, last_workout=stored)
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = _echo_update(base)

    activity = datetime(2026, 1, 2, 20, 0, tzinfo=timezone(timedelta(hours=-5)))
    result = await service.update_streak(test_character_id, activity_at=activity)

    assert result['character'].streak == 4
    mock_queries.update_character.assert_awaited_once()


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_streak_manual_value(mock_queries, service, make_character_row, test_character_id):
    base = make_character_row()
    mock_queries.update_character = _echo_update(base)

    result = await service.update_streak(test_character_id, new_streak=9)

    assert result['success'] is True
    assert result['character'].streak == 9


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_update_streak_manual_negative(mock_queries, service, test_character_id):
    mock_queries.update_character = AsyncMock()

    result = await service.update_streak(test_character_id, new_streak=-1)

    assert result['success'] is False
    assert result['error_type'] == 'ValidationError'


# ============================================================================
# Quests
# ============================================================================

@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_complete_quest_single_write(mock_queries, service, make_character_row, test_character_id):
    """Counter and XP go out in exactly one write"""
    base = make_character_row(quests_completed=0)
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = _echo_update(base)

    result = await service.complete_quest(test_character_id, 50)

    assert result['success'] is True
    assert result['character'].quests_completed == 1
    assert result['character'].xp == 50
    assert mock_queries.update_character.await_count == 1

    _, fields = mock_queries.update_character.call_args.args
    assert fields['quests_completed'] == 1
    assert fields['total_xp'] == 50
    assert [b.id for b in result['badges_unlocked']] == ['first_quest']


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_complete_quest_levels_up(mock_queries, service, make_character_row, test_character_id):
    base = make_character_row(xp=80, total_xp=80, quests_completed=4)
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = _echo_update(base)

    result = await service.complete_quest(test_character_id, 50)

    assert result['leveled_up'] is True
    assert result['character'].level == 2
    assert result['character'].xp == 30
    assert result['character'].quests_completed == 5


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_complete_quest_conflict_leaves_nothing_applied(mock_queries, service, make_character_row, test_character_id):
    base = make_character_row()
    mock_queries.get_character_by_id = AsyncMock(return_value=base)
    mock_queries.update_character = AsyncMock(return_value=None)

    result = await service.complete_quest(test_character_id, 50)

    assert result['success'] is False
    assert result['error_type'] == 'ConcurrentUpdateError'
    assert mock_queries.update_character.await_count == 1


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_complete_quest_negative_reward(mock_queries, service, test_character_id):
    mock_queries.get_character_by_id = AsyncMock()

    result = await service.complete_quest(test_character_id, -5)

    assert result['success'] is False
    mock_queries.get_character_by_id.assert_not_called()


# ============================================================================
# Onboarding
# ============================================================================

@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_setup_profile_creates_missing_character(mock_queries, service, make_character_row, test_user_id):
    created = make_character_row(name="Ana", gender="female")
    mock_queries.get_character_by_user_id = AsyncMock(return_value=None)
    mock_queries.create_character = AsyncMock(return_value=created)
    mock_queries.update_character = _echo_update(created)

    profile = ProfileInput(gender="female", height=170, weight=65, goal=" Get stronger ")
    result = await service.setup_profile(test_user_id, "Ana", profile)

    assert result['success'] is True
    assert result['character'].height == 170
    assert result['character'].goal == "Get stronger"
    mock_queries.create_character.assert_awaited_once_with(test_user_id, "Ana", "female")


@pytest.mark.asyncio
@patch('src.services.character_service.queries')
async def test_setup_profile_existing_character(mock_queries, service, make_character_row, test_user_id):
    existing = make_character_row()
    mock_queries.get_character_by_user_id = AsyncMock(return_value=existing)
    mock_queries.create_character = AsyncMock()
    mock_queries.update_character = _echo_update(existing)

    result = await service.setup_profile(test_user_id, "Hero", ProfileInput(weight=80))

    assert result['success'] is True
    assert result['character'].weight == 80
    mock_queries.create_character.assert_not_called()
