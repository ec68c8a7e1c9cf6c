"""Local persistence for the current session and cached character data

Each key is stored as its own JSON file under DATA_PATH/storage:
- auth_session.json: the signed-in session (tokens + user)
- character_data.json: last known character snapshot
"""
import json
import logging
from pathlib import Path
from typing import Any, Optional
from pydantic import ValidationError as PydanticValidationError

from src.config import DATA_PATH
from src.models.auth import Session

logger = logging.getLogger(__name__)

SESSION_KEY = "auth_session"
CHARACTER_KEY = "character_data"


class SessionStore:
    """Key/value file store mirroring the device's local storage"""

    def __init__(self, data_path: Path = DATA_PATH):
        self.storage_dir = data_path / "storage"

    def _path(self, key: str) -> Path:
        return self.storage_dir / f"{key}.json"

    async def get_item(self, key: str) -> Optional[Any]:
        """Read a stored value, None if missing or unreadable"""
        filepath = self._path(key)
        if not filepath.exists():
            return None
        try:
            return json.loads(filepath.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {filepath.name}: {e}")
            return None

    async def set_item(self, key: str, value: Any) -> None:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(json.dumps(value, default=str))
        logger.debug(f"Stored {key}")

    async def remove_item(self, key: str) -> None:
        filepath = self._path(key)
        if filepath.exists():
            filepath.unlink()
            logger.debug(f"Removed {key}")

    async def save_session(self, session: Session) -> None:
        await self.set_item(SESSION_KEY, session.model_dump(mode="json"))

    async def load_session(self) -> Optional[Session]:
        """Stored session, or None (a corrupt entry is discarded)"""
        data = await self.get_item(SESSION_KEY)
        if data is None:
            return None
        try:
            return Session.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"Discarding unreadable stored session: {e}")
            await self.remove_item(SESSION_KEY)
            return None

    async def clear_session(self) -> None:
        await self.remove_item(SESSION_KEY)

    async def save_character(self, character: dict[str, Any]) -> None:
        await self.set_item(CHARACTER_KEY, character)

    async def load_character(self) -> Optional[dict[str, Any]]:
        return await self.get_item(CHARACTER_KEY)

    async def clear_character(self) -> None:
        await self.remove_item(CHARACTER_KEY)


class InMemorySessionStore(SessionStore):
    """Same interface, nothing written to disk (one per API request)"""

    def __init__(self):
        self._items: dict[str, Any] = {}

    async def get_item(self, key: str) -> Optional[Any]:
        return self._items.get(key)

    async def set_item(self, key: str, value: Any) -> None:
        self._items[key] = json.loads(json.dumps(value, default=str))

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
