"""Character database queries"""
import logging
from typing import Optional, Any
from psycopg import sql
from src.db.connection import db

logger = logging.getLogger(__name__)

CHARACTER_COLUMNS = (
    "id", "user_id", "name", "level", "xp", "xp_to_next_level", "total_xp",
    "streak", "last_workout", "quests_completed", "gender", "height", "weight",
    "goal", "version", "created_at", "updated_at",
)

# Columns a caller may write through update_character
UPDATABLE_COLUMNS = frozenset({
    "name", "level", "xp", "xp_to_next_level", "total_xp", "streak",
    "last_workout", "quests_completed", "gender", "height", "weight", "goal",
})

_RETURNING = sql.SQL(", ").join(sql.Identifier(c) for c in CHARACTER_COLUMNS)


def _row(row: Optional[dict]) -> Optional[dict]:
    if not row:
        return None
    row = dict(row)
    if row.get("id") is not None:
        row["id"] = str(row["id"])
    if row.get("user_id") is not None:
        row["user_id"] = str(row["user_id"])
    return row


async def create_character(user_id: str, name: str, gender: str = "male") -> dict:
    """
    Insert a character with starting stats

    Defaults: level 1, 0 XP, 100 XP to next level, no streak, no quests.

    Returns:
        The created row
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                sql.SQL(
                    """
                    INSERT INTO characters (
                        user_id, name, level, xp, xp_to_next_level, total_xp,
                        streak, last_workout, quests_completed, gender,
                        height, weight, goal, version
                    )
                    VALUES (%s, %s, 1, 0, 100, 0, 0, NULL, 0, %s, NULL, NULL, NULL, 1)
                    RETURNING {}
                    """
                ).format(_RETURNING),
                (user_id, name, gender)
            )
            row = await cur.fetchone()
            await conn.commit()

    logger.info(f"Created character for user {user_id}")
    return _row(row)


async def get_character_by_user_id(user_id: str) -> Optional[dict]:
    """Character owned by a user, or None for users who have not onboarded yet"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                sql.SQL("SELECT {} FROM characters WHERE user_id = %s").format(_RETURNING),
                (user_id,)
            )
            return _row(await cur.fetchone())


async def get_character_by_id(character_id: str) -> Optional[dict]:
    """Character by primary key, or None"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                sql.SQL("SELECT {} FROM characters WHERE id = %s").format(_RETURNING),
                (character_id,)
            )
            return _row(await cur.fetchone())


async def update_character(
    character_id: str,
    fields: dict[str, Any],
    expected_version: Optional[int] = None
) -> Optional[dict]:
    """
    Write a partial update and bump the row version

    Args:
        character_id: Character UUID
        fields: column -> value; only UPDATABLE_COLUMNS are accepted
        expected_version: when given, the write only happens if the stored
            version still matches (optimistic concurrency)

    Returns:
        Updated row, or None when no row matched (missing id or stale version)

    Raises:
        ValueError: unknown column in fields
    """
    unknown = set(fields) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Cannot update character columns: {', '.join(sorted(unknown))}")

    assignments = [
        sql.SQL("{} = %s").format(sql.Identifier(column))
        for column in fields
    ]
    assignments.append(sql.SQL("version = version + 1"))
    assignments.append(sql.SQL("updated_at = CURRENT_TIMESTAMP"))

    params: list[Any] = list(fields.values())
    params.append(character_id)

    where = sql.SQL("id = %s")
    if expected_version is not None:
        where = sql.SQL("id = %s AND version = %s")
        params.append(expected_version)

    query = sql.SQL("UPDATE characters SET {} WHERE {} RETURNING {}").format(
        sql.SQL(", ").join(assignments),
        where,
        _RETURNING,
    )

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            row = await cur.fetchone()
            await conn.commit()

    if row is None:
        logger.warning(
            f"Character update matched no row: id={character_id}, "
            f"expected_version={expected_version}"
        )
    return _row(row)
