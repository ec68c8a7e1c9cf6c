"""Global test fixtures and utilities for QuestFit tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, timezone

from src.auth.session_store import InMemorySessionStore
from src.models.auth import AuthUser, Session


# ============================================================================
# User & Auth Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "6a1f3c1e-4c1b-4f5a-9a57-1f0c2b7e9d11"


@pytest.fixture
def test_character_id():
    """Standard test character ID"""
    return "0d5b1d0e-7c55-4d6f-8f0c-2f6a1e9b3c44"


@pytest.fixture
def test_auth_user(test_user_id):
    """Signed-in user"""
    return AuthUser(
        id=test_user_id,
        email="hero@questfit.app",
        name="Hero",
        created_at=datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def test_session(test_auth_user):
    """Session issued by the identity provider"""
    return Session(
        access_token="access-token-123",
        refresh_token="refresh-token-456",
        expires_at=1900000000,
        user=test_auth_user,
    )


@pytest.fixture
def session_store():
    """Session store that never touches disk"""
    return InMemorySessionStore()


@pytest.fixture
def mock_identity():
    """Identity provider with every call mocked"""
    identity = MagicMock()
    identity.sign_up = AsyncMock()
    identity.sign_in_with_password = AsyncMock()
    identity.sign_out = AsyncMock()
    identity.update_user = AsyncMock()
    identity.get_user = AsyncMock()
    return identity


# ============================================================================
# Character Fixtures
# ============================================================================

@pytest.fixture
def make_character_row(test_user_id, test_character_id):
    """Factory for character rows as the store returns them"""
    def _make(**overrides):
        row = {
            "id": test_character_id,
            "user_id": test_user_id,
            "name": "Hero",
            "level": 1,
            "xp": 0,
            "xp_to_next_level": 100,
            "total_xp": 0,
            "streak": 0,
            "last_workout": None,
            "quests_completed": 0,
            "gender": "male",
            "height": None,
            "weight": None,
            "goal": None,
            "version": 1,
            "created_at": datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            "updated_at": datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        }
        row.update(overrides)
        return row
    return _make

