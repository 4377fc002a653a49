"""
User lookup by caller phone number.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict

from relay_agent.config.constants import LOGGER_NAME
from relay_agent.services.postgres import PostgresPool

logger = logging.getLogger(LOGGER_NAME)


class UserDirectory(ABC):
    """Interface for resolving callers to user ids."""

    @abstractmethod
    async def get_or_create_user(self, phone_number: str) -> str:
        """Return the id of the user with this phone number, creating the user if needed."""


class InMemoryUserDirectory(UserDirectory):
    def __init__(self):
        self._users: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get_or_create_user(self, phone_number: str) -> str:
        async with self._lock:
            user_id = self._users.get(phone_number)
            if user_id is None:
                user_id = str(uuid.uuid4())
                self._users[phone_number] = user_id
                logger.info(f"Created user {user_id} for caller: {phone_number}")
            return user_id


class PostgresUserDirectory(UserDirectory):
    """User directory backed by the `users` table."""

    def __init__(self, pool: PostgresPool):
        self._pool = pool

    async def get_or_create_user(self, phone_number: str) -> str:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id FROM users WHERE phone_number = $1", phone_number
            )
            if row is None:
                row = await conn.fetchrow(
                    "INSERT INTO users (phone_number) VALUES ($1) RETURNING id",
                    phone_number,
                )
                logger.info(f"Created user {row['id']} for caller: {phone_number}")
        return str(row["id"])
