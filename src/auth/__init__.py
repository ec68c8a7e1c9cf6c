"""Identity provider client and local session storage"""

from src.auth.identity import IdentityProvider
from src.auth.session_store import SessionStore, InMemorySessionStore

__all__ = ["IdentityProvider", "SessionStore", "InMemorySessionStore"]
