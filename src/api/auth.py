"""API authentication using identity provider access tokens"""
import logging
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from src.auth.session_store import InMemorySessionStore
from src.services.app_state import AppState
from src.services.container import get_container

logger = logging.getLogger(__name__)

security = HTTPBearer()


def new_app_state() -> AppState:
    """Request-scoped state with no session (register/login)"""
    return get_container().create_app_state(InMemorySessionStore())


async def get_app_state(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> AppState:
    """
    Resolve the bearer token to a user

    Raises:
        HTTPException: 401 if the identity provider rejects the token
    """
    state = new_app_state()
    result = await state.auth.use_access_token(credentials.credentials)

    if not result['success']:
        logger.warning(f"Rejected access token: {result.get('error')}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.get('error') or "Invalid session"
        )

    return state


async def get_character_state(state: AppState = Depends(get_app_state)) -> AppState:
    """
    Authenticated state with the user's character loaded

    Raises:
        HTTPException: 502 if the character store cannot be read
    """
    await state.load_character()
    if state.error:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=state.error
        )
    return state
