"""
Unit tests for AuthService

Registration, login, logout, profile updates and session restore.
The identity provider is mocked; nothing leaves the process.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

import httpx

from src.exceptions import IdentityProviderError
from src.models.auth import AuthResponse
from src.services.auth_service import (
    AuthService,
    CONFIRMATION_PENDING_MESSAGE,
    translate_sign_up_error,
)

@pytest.fixture
def mock_characters():
    characters = MagicMock()
    characters.create_character = AsyncMock(return_value={'success': True, 'character': None})
    return characters

@pytest.fixture
def auth(mock_identity, session_store, mock_characters):
    return AuthService(mock_identity, session_store, mock_characters)

# ============================================================================
# Registration
# ============================================================================

class TestRegister:
    """AuthService.register"""

    @pytest.mark.asyncio
    async def test_short_password_never_reaches_provider(self, auth, mock_identity):
        result = await auth.register("hero@questfit.app", "12345", "Hero")

        assert result == {'success': False, 'error': "Password must be at least 6 characters long"}
        mock_identity.sign_up.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_fields(self, auth):
        result = await auth.register("", "secret1", "Hero")
        assert result['error'] == "All fields are required"

    @pytest.mark.asyncio
    async def test_short_name(self, auth):
        result = await auth.register("hero@questfit.app", "secret1", " H ")
        assert result['error'] == "Name must be at least 2 characters long"

    @pytest.mark.asyncio
    async def test_bad_email(self, auth):
        result = await auth.register("foo@bar", "secret1", "Hero")
        assert result['error'] == "Please enter a valid email address"

    @pytest.mark.asyncio
    async def test_success_stores_session_and_creates_character(
        self, auth, mock_identity, mock_characters, session_store, test_session
    ):
        mock_identity.sign_up.return_value = AuthResponse(user=test_session.user, session=test_session)

        result = await auth.register(" Hero@QuestFit.app ", "secret1", " Hero ")

        assert result['success'] is True
        assert result['pending_confirmation'] is False
        assert auth.session == test_session
        assert await session_store.load_session() == test_session

        email, password, metadata = mock_identity.sign_up.call_args.args
        assert email == "hero@questfit.app"
        assert metadata.name == "Hero"
        mock_characters.create_character.assert_awaited_once()
        assert mock_characters.create_character.call_args.args[:2] == (test_session.user.id, "Hero")

    @pytest.mark.asyncio
    async def test_pending_confirmation(self, auth, mock_identity, session_store, test_auth_user):
        mock_identity.sign_up.return_value = AuthResponse(user=test_auth_user)

        result = await auth.register("hero@questfit.app", "secret1", "Hero")

        assert result['success'] is True
        assert result['pending_confirmation'] is True
        assert result['error'] == CONFIRMATION_PENDING_MESSAGE
        assert auth.session is None
        assert await session_store.load_session() is None

    @pytest.mark.asyncio
    async def test_character_failure_does_not_fail_registration(
        self, auth, mock_identity, mock_characters, test_session
    ):
        mock_identity.sign_up.return_value = AuthResponse(user=test_session.user, session=test_session)
        mock_characters.create_character.return_value = {'success': False, 'error': 'db down'}

        result = await auth.register("hero@questfit.app", "secret1", "Hero")

        assert result['success'] is True

    @pytest.mark.asyncio
    async def test_already_registered_translated(self, auth, mock_identity):
        mock_identity.sign_up.side_effect = IdentityProviderError("User already registered", status_code=422)

        result = await auth.register("hero@questfit.app", "secret1", "Hero")

        assert result['success'] is False
        assert "already exists" in result['error']

    @pytest.mark.asyncio
    async def test_network_error(self, auth, mock_identity):
        mock_identity.sign_up.side_effect = httpx.ConnectError("refused")

        result = await auth.register("hero@questfit.app", "secret1", "Hero")

        assert result['success'] is False
        assert "trouble connecting" in result['error']

    @pytest.mark.asyncio
    async def test_session_write_failure_is_not_raised(self, auth, mock_identity, session_store, test_session):
        session_store.save_session = AsyncMock(side_effect=PermissionError("read-only"))
        mock_identity.sign_up.return_value = AuthResponse(user=test_session.user, session=test_session)

        result = await auth.register("hero@questfit.app", "secret1", "Hero")

        assert result['success'] is True
        assert result['pending_confirmation'] is False

class TestTranslateSignUpError:
    """Provider message mapping"""

    def test_invalid_email(self):
        assert "format is not accepted" in translate_sign_up_error("Email address is invalid")

    def test_signups_disabled(self):
        assert "currently disabled" in translate_sign_up_error("Signups not allowed for this instance")

    def test_passthrough(self):
        assert translate_sign_up_error("Something odd") == "Something odd"

    def test_empty(self):
        assert translate_sign_up_error("") == "Registration failed. Please try again."

# ============================================================================
# Login / logout
# ============================================================================

class TestLogin:
    """AuthService.login"""

    @pytest.mark.asyncio
    async def test_required_fields(self, auth, mock_identity):
        result = await auth.login("hero@questfit.app", "")

        assert result == {'success': False, 'error': "Email and password are required"}
        mock_identity.sign_in_with_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_success(self, auth, mock_identity, session_store, test_session):
        mock_identity.sign_in_with_password.return_value = AuthResponse(
            user=test_session.user, session=test_session
        )

        result = await auth.login("HERO@questfit.app", "secret1")

        assert result['success'] is True
        assert result['session'] == test_session
        assert auth.is_authenticated is True
        mock_identity.sign_in_with_password.assert_awaited_once_with("hero@questfit.app", "secret1")
        assert await session_store.load_session() == test_session

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth, mock_identity):
        mock_identity.sign_in_with_password.side_effect = IdentityProviderError("Invalid login credentials")

        result = await auth.login("hero@questfit.app", "wrong1")

        assert result == {'success': False, 'error': "Invalid login credentials"}
        assert auth.is_authenticated is False

    @pytest.mark.asyncio
    async def test_no_session_returned(self, auth, mock_identity, test_auth_user):
        mock_identity.sign_in_with_password.return_value = AuthResponse(user=test_auth_user)

        result = await auth.login("hero@questfit.app", "secret1")

        assert result['error'] == 'Login failed. No session returned.'

    @pytest.mark.asyncio
    async def test_session_write_failure_still_signs_in(self, auth, mock_identity, session_store, test_session):
        session_store.save_session = AsyncMock(side_effect=OSError("disk full"))
        mock_identity.sign_in_with_password.return_value = AuthResponse(
            user=test_session.user, session=test_session
        )

        result = await auth.login("hero@questfit.app", "secret1")

        assert result['success'] is True
        assert auth.session == test_session

class TestLogout:
    """AuthService.logout"""

    @pytest.mark.asyncio
    async def test_clears_everything(self, auth, mock_identity, session_store, test_session):
        await session_store.save_session(test_session)
        await session_store.save_character({"id": "abc"})
        auth.session = test_session

        await auth.logout()

        assert auth.session is None
        assert await session_store.load_session() is None
        assert await session_store.load_character() is None
        mock_identity.sign_out.assert_awaited_once_with(test_session.access_token)

    @pytest.mark.asyncio
    async def test_provider_failure_still_clears_local_state(self, auth, mock_identity, session_store, test_session):
        await session_store.save_session(test_session)
        auth.session = test_session
        mock_identity.sign_out.side_effect = IdentityProviderError("Session not found")

        await auth.logout()

        assert auth.session is None
        assert await session_store.load_session() is None

    @pytest.mark.asyncio
    async def test_without_session_skips_provider(self, auth, mock_identity):
        await auth.logout()
        mock_identity.sign_out.assert_not_called()

# ============================================================================
# Profile & session restore
# ============================================================================

class TestProfile:
    """AuthService.update_profile"""

    @pytest.mark.asyncio
    async def test_requires_session(self, auth):
        result = await auth.update_profile(name="Zed")
        assert result == {'success': False, 'error': 'No user session found'}

    @pytest.mark.asyncio
    async def test_updates_stored_user(self, auth, mock_identity, session_store, test_session, test_auth_user):
        auth.session = test_session
        renamed = test_auth_user.model_copy(update={'name': 'Zed'})
        mock_identity.update_user.return_value = renamed

        result = await auth.update_profile(name="Zed")

        assert result['success'] is True
        assert auth.session.user.name == "Zed"
        assert (await session_store.load_session()).user.name == "Zed"

class TestSessionRestore:
    """restore_session and use_access_token"""

    @pytest.mark.asyncio
    async def test_restore(self, auth, session_store, test_session):
        await session_store.save_session(test_session)

        restored = await auth.restore_session()

        assert restored == test_session
        assert auth.is_authenticated is True

    @pytest.mark.asyncio
    async def test_restore_nothing_stored(self, auth):
        assert await auth.restore_session() is None
        assert auth.is_authenticated is False

    @pytest.mark.asyncio
    async def test_use_access_token(self, auth, mock_identity, test_auth_user):
        mock_identity.get_user.return_value = test_auth_user

        result = await auth.use_access_token("token-abc")

        assert result['success'] is True
        assert auth.session.access_token == "token-abc"
        assert auth.session.user == test_auth_user

    @pytest.mark.asyncio
    async def test_use_access_token_rejected(self, auth, mock_identity):
        mock_identity.get_user.side_effect = IdentityProviderError("invalid JWT", status_code=401)

        result = await auth.use_access_token("expired")

        assert result['success'] is False
        assert auth.session is None
