"""Database connection and session management."""
import logging
import asyncpg
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from config import get_settings
from database.schema import SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)


class Database:
    """Async PostgreSQL connection pool."""

    def __init__(self):
        self.pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        settings = get_settings()
        self.pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=2,
            max_size=10,
            timeout=settings.store_timeout_seconds,
            command_timeout=settings.store_timeout_seconds,
        )
        logger.info("Connected to user store")

    async def init_schema(self) -> None:
        async with self.acquire() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)

    async def disconnect(self) -> None:
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Disconnected from user store")

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[asyncpg.Connection, None]:
        if not self.pool:
            raise RuntimeError("Database pool not initialized")
        timeout = get_settings().store_timeout_seconds
        async with self.pool.acquire(timeout=timeout) as conn:
            yield conn

    async def execute(self, query: str, *args) -> str:
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetchrow(self, query: str, *args) -> asyncpg.Record | None:
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)


db = Database()
