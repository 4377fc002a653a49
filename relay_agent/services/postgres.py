"""
PostgreSQL connection pool management.

Provides a single asyncpg pool shared by the Postgres-backed user directory and
session store. The tables themselves are managed outside this service.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from relay_agent.config.constants import LOGGER_NAME
from relay_agent.errors import StoreError

logger = logging.getLogger(LOGGER_NAME)


class PostgresPool:
    """Manages an asyncpg connection pool.

    Usage:
        pool = PostgresPool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT ...")
        await pool.close()
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        min_size: int = 1,
        max_size: int = 10,
        max_inactive_connection_lifetime: float = 30.0,
        timeout: float = 2.0,
    ):
        """Initialize pool configuration.

        Args:
            dsn: Database connection string. Falls back to environment variables.
            min_size: Minimum number of connections to keep open.
            max_size: Maximum number of connections in the pool.
            max_inactive_connection_lifetime: Close connections idle longer than this (seconds).
            timeout: Seconds to wait when establishing a connection.
        """
        self._dsn = dsn or self._get_dsn_from_env()
        self._min_size = min_size
        self._max_size = max_size
        self._max_inactive_connection_lifetime = max_inactive_connection_lifetime
        self._timeout = timeout
        self._pool: Optional[asyncpg.Pool] = None

    @staticmethod
    def _get_dsn_from_env() -> str:
        """Get database DSN from environment variables."""
        dsn = os.environ.get("DATABASE_URL")
        if dsn:
            return dsn

        host = os.environ.get("DB_HOST", "localhost")
        port = os.environ.get("DB_PORT", "5432")
        user = os.environ.get("DB_USER", "admin")
        password = os.environ.get("DB_PASSWORD", "password")
        database = os.environ.get("DB_NAME", "db0")

        return f"postgresql://{user}:{password}@{host}:{port}/{database}"

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Create the pool if it does not exist yet."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                max_inactive_connection_lifetime=self._max_inactive_connection_lifetime,
                timeout=self._timeout,
            )
            logger.info(
                f"Postgres pool connected (min_size={self._min_size}, max_size={self._max_size})"
            )
        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise StoreError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e

    async def close(self) -> None:
        """Close the pool gracefully."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Postgres pool closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection, connecting the pool on first use."""
        if self._pool is None:
            await self.connect()

        try:
            async with self._pool.acquire() as connection:
                yield connection
        except (
            asyncpg.PostgresError,
            asyncpg.InterfaceError,
            asyncio.TimeoutError,
            OSError,
        ) as e:
            logger.error(f"PostgreSQL error: {e}")
            raise StoreError(f"PostgreSQL error: {e}", cause=e) from e
