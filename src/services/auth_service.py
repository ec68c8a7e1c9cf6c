"""
AuthService - Registration, Login and Session Business Logic

Validates form input locally, then delegates credential checks and session
issuance to the identity provider. Sessions are cached in local storage so
the app can restore them on the next start.
"""

import logging
from typing import Optional, Dict, Any

from src.auth.identity import IdentityProvider
from src.auth.session_store import SessionStore
from src.exceptions import QuestFitError, IdentityProviderError, wrap_external_exception
from src.models.auth import Session, UserMetadata
from src.models.character import Gender
from src.validators import RegistrationInput, LoginInput, safe_validate

logger = logging.getLogger(__name__)

CONFIRMATION_PENDING_MESSAGE = (
    "Please check your email and click the confirmation link to complete registration."
)
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


def translate_sign_up_error(message: str) -> str:
    """Map provider sign-up errors onto messages a user can act on"""
    lowered = message.lower()
    if "invalid" in lowered and "email" in lowered:
        return "The email address format is not accepted. Please try a different email."
    if "user already registered" in lowered:
        return "An account with this email already exists. Please try signing in instead."
    if "signup disabled" in lowered or "signups not allowed" in lowered:
        return "Account registration is currently disabled. Please contact support."
    return message or "Registration failed. Please try again."


class AuthService:
    """
    Service for authentication.

    Responsibilities:
    - Local validation of registration/login input
    - Sign up (plus character creation), sign in, sign out
    - Profile metadata updates on the identity provider
    - Persisting and restoring the current session
    """

    def __init__(
        self,
        identity: IdentityProvider,
        session_store: SessionStore,
        character_service=None
    ):
        """
        Initialize AuthService.

        Args:
            identity: identity provider client
            session_store: local session storage
            character_service: CharacterService used to create the character at sign-up
        """
        self.identity = identity
        self.sessions = session_store
        self.characters = character_service
        self.session: Optional[Session] = None

    async def register(self, email: str, password: str, name: str) -> Dict[str, Any]:
        """
        Register a new account.

        Returns:
            dict: {
                'success': bool,
                'error': str,                 # failure reason or confirmation notice
                'pending_confirmation': bool,
                'user': AuthUser,
                'session': Session
            }
        """
        form, error = safe_validate(RegistrationInput, email=email, password=password, name=name)
        if error:
            return {'success': False, 'error': error}

        logger.info(f"Attempting registration for {form.email}")

        try:
            response = await self.identity.sign_up(
                form.email,
                form.password,
                UserMetadata(name=form.name, full_name=form.name)
            )
        except IdentityProviderError as e:
            return {'success': False, 'error': translate_sign_up_error(e.message)}
        except Exception as e:
            logger.error(f"Registration error: {e}", exc_info=True)
            return {'success': False, 'error': self._remote_error(e, "register")}

        if response.user and self.characters is not None:
            created = await self.characters.create_character(response.user.id, form.name, Gender.MALE)
            if not created['success']:
                # Registration still succeeds; the character can be created at onboarding
                logger.error(f"Failed to create character for {response.user.id}: {created.get('error')}")

        if response.pending_confirmation:
            logger.info(f"Email confirmation required for user {response.user.id}")
            return {
                'success': True,
                'pending_confirmation': True,
                'error': CONFIRMATION_PENDING_MESSAGE,
                'user': response.user,
            }

        if response.session:
            await self._store_session(response.session)

        logger.info(f"Registration successful for user {response.user.id if response.user else None}")
        return {
            'success': True,
            'pending_confirmation': False,
            'user': response.user,
            'session': response.session,
        }

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email and password.

        Returns:
            dict: {'success': bool, 'error': str, 'session': Session}
        """
        form, error = safe_validate(LoginInput, email=email, password=password)
        if error:
            return {'success': False, 'error': error}

        logger.info(f"Attempting login for {form.email}")

        try:
            response = await self.identity.sign_in_with_password(form.email, form.password)
        except IdentityProviderError as e:
            return {'success': False, 'error': e.message or 'Login failed. Please try again.'}
        except Exception as e:
            logger.error(f"Login error: {e}", exc_info=True)
            return {'success': False, 'error': self._remote_error(e, "login")}

        if not response.session:
            return {'success': False, 'error': 'Login failed. No session returned.'}

        await self._store_session(response.session)
        return {'success': True, 'session': response.session, 'user': response.session.user}

    async def logout(self) -> None:
        """
        Sign out.

        Local state is cleared first; provider failures are logged and
        never raised.
        """
        session = self.session

        try:
            await self.sessions.clear_character()
        except OSError as e:
            logger.warning(f"Error clearing character data: {e}")

        self.session = None

        try:
            await self.sessions.clear_session()
        except OSError as e:
            logger.error(f"Failed to clear stored session: {e}")

        if session is not None:
            try:
                await self.identity.sign_out(session.access_token)
                logger.info("Provider sign out successful")
            except QuestFitError as e:
                logger.error(f"Provider sign out failed: {e.message}")

    async def update_profile(self, name: Optional[str] = None) -> Dict[str, Any]:
        """
        Update the user's display name on the identity provider.

        Returns:
            dict: {'success': bool, 'error': str, 'user': AuthUser}
        """
        if self.session is None:
            return {'success': False, 'error': 'No user session found'}

        try:
            user = await self.identity.update_user(
                self.session.access_token,
                UserMetadata(name=name, full_name=name)
            )
        except IdentityProviderError as e:
            return {'success': False, 'error': e.message or 'Failed to update profile'}
        except Exception as e:
            logger.error(f"Profile update error: {e}", exc_info=True)
            return {'success': False, 'error': self._remote_error(e, "update_profile")}

        await self._store_session(self.session.model_copy(update={'user': user}))
        return {'success': True, 'user': user}

    async def restore_session(self) -> Optional[Session]:
        """Load the stored session (app start)"""
        self.session = await self.sessions.load_session()
        if self.session:
            logger.info(f"Restored session for user {self.session.user.id}")
        return self.session

    async def use_access_token(self, access_token: str) -> Dict[str, Any]:
        """
        Adopt a session from a bearer token (API requests).

        Returns:
            dict: {'success': bool, 'error': str, 'user': AuthUser}
        """
        try:
            user = await self.identity.get_user(access_token)
        except IdentityProviderError as e:
            return {'success': False, 'error': e.message or 'Invalid session'}
        except Exception as e:
            logger.error(f"Token lookup error: {e}", exc_info=True)
            return {'success': False, 'error': self._remote_error(e, "get_user")}

        self.session = Session(access_token=access_token, user=user)
        return {'success': True, 'user': user}

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    async def _store_session(self, session: Session) -> None:
        """Set the current session and persist it; write failures are logged"""
        self.session = session
        try:
            await self.sessions.save_session(session)
        except OSError as e:
            logger.error(f"Failed to persist session: {e}")

    @staticmethod
    def _remote_error(error: Exception, operation: str) -> str:
        wrapped = wrap_external_exception(error, operation=operation)
        if type(wrapped) is QuestFitError:
            return UNEXPECTED_ERROR_MESSAGE
        return wrapped.user_message
