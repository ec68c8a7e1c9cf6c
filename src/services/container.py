"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (db, identity provider, session store) are injected.
    """

    # Infrastructure dependencies (injected)
    db: object  # Database instance
    identity: object  # IdentityProvider instance
    session_store: object  # SessionStore instance

    # Services (lazy-loaded via properties)
    _character_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def character_service(self):
        """Get CharacterService instance (lazy-loaded)"""
        if self._character_service is None:
            from src.services.character_service import CharacterService
            self._character_service = CharacterService(self.db)
            logger.debug("CharacterService instantiated")
        return self._character_service

    def create_app_state(self, session_store: Optional[object] = None):
        """
        Build a fresh AppState.

        The client holds one for its lifetime; the API builds one per request
        with its own in-memory session store so sessions never leak between callers.
        """
        from src.services.app_state import AppState
        from src.services.auth_service import AuthService

        auth = AuthService(
            self.identity,
            session_store if session_store is not None else self.session_store,
            self.character_service
        )
        return AppState(auth, self.character_service)


# Global container instance (initialized in main.py / api/server.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(
    db: object,
    identity: object,
    session_store: object
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        db: Database instance
        identity: IdentityProvider instance
        session_store: SessionStore instance

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(
        db=db,
        identity=identity,
        session_store=session_store
    )

    logger.info("Service container initialized")
    return _container


def reset_container() -> None:
    """Drop the global container (shutdown, tests)"""
    global _container
    _container = None
