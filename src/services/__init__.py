"""
Service Layer Package

Business logic between the presentation layer (client state / HTTP API)
and the data access layer (store queries, identity provider).

Core Services:
- CharacterService: character lifecycle, XP, streaks, quests
- AuthService: registration, login, logout, session persistence
- AppState: explicit application state built on both services
"""

from src.services.container import ServiceContainer, get_container, init_container, reset_container
from src.services.character_service import CharacterService
from src.services.auth_service import AuthService
from src.services.app_state import AppState

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "reset_container",
    "CharacterService",
    "AuthService",
    "AppState",
]
