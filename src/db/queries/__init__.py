"""
Database queries - re-exported so callers can use 'from src.db import queries'.

Module organization:
- character.py: character CRUD with optimistic concurrency
"""

from src.db.queries.character import (
    CHARACTER_COLUMNS,
    UPDATABLE_COLUMNS,
    create_character,
    get_character_by_user_id,
    get_character_by_id,
    update_character,
)

__all__ = [
    "CHARACTER_COLUMNS",
    "UPDATABLE_COLUMNS",
    "create_character",
    "get_character_by_user_id",
    "get_character_by_id",
    "update_character",
]
