"""Remote store connection management"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from src.config import DATABASE_URL

logger = logging.getLogger(__name__)


class Database:
    """Connection pool for the hosted Postgres store"""

    def __init__(self, connection_string: str = DATABASE_URL, min_size: int = 1, max_size: int = 5):
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Open the connection pool"""
        if self._pool is not None:
            return
        logger.info("Initializing store connection pool")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        """Close the connection pool"""
        if self._pool:
            logger.info("Closing store connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow a connection; rows come back as dicts"""
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    async def ping(self) -> bool:
        """True when the store answers a trivial query"""
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1")
                    return await cur.fetchone() is not None
        except (psycopg.Error, RuntimeError) as e:
            logger.warning(f"Store ping failed: {e}")
            return False


# Global database instance
db = Database()
