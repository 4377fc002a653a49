"""
Durable storage for call sessions and their conversation logs.

A stored session row outlives the in-memory CallSession: it is created when the
call is set up, its conversation column is rewritten every time the log
changes, and a summary is attached when the call ends.
"""

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from relay_agent.config.constants import LOGGER_NAME
from relay_agent.errors import StoreError
from relay_agent.models.conversation import ConversationLog
from relay_agent.services.postgres import PostgresPool

logger = logging.getLogger(LOGGER_NAME)


@dataclass
class StoredSession:
    """A persisted session row."""

    id: str
    user_id: str
    call_id: str
    websocket_id: Optional[str] = None
    conversation: ConversationLog = field(default_factory=ConversationLog)
    summary: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionStore(ABC):
    """Interface for session persistence."""

    @abstractmethod
    async def create_if_absent(
        self, user_id: str, call_id: str, websocket_id: Optional[str] = None
    ) -> StoredSession:
        """Return the session stored for the call, creating it if needed."""

    @abstractmethod
    async def load(self, call_id: str) -> Optional[ConversationLog]:
        """Return the stored conversation for a call, or None if the call is unknown."""

    @abstractmethod
    async def save(self, call_id: str, log: ConversationLog) -> None:
        """Replace the stored conversation for a call."""

    @abstractmethod
    async def save_summary(self, call_id: str, summary: str) -> None:
        """Attach an end-of-call summary to the stored session."""

    async def close(self) -> None:
        return None


class InMemorySessionStore(SessionStore):
    """Process-local store, used for development and tests."""

    def __init__(self):
        self._sessions: Dict[str, StoredSession] = {}
        self._lock = asyncio.Lock()

    async def create_if_absent(
        self, user_id: str, call_id: str, websocket_id: Optional[str] = None
    ) -> StoredSession:
        async with self._lock:
            stored = self._sessions.get(call_id)
            if stored is None:
                stored = StoredSession(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    call_id=call_id,
                    websocket_id=websocket_id,
                )
                self._sessions[call_id] = stored
                logger.info(f"Created session {stored.id} for call: {call_id}")
            return stored

    async def load(self, call_id: str) -> Optional[ConversationLog]:
        stored = self._sessions.get(call_id)
        if stored is None:
            return None
        return stored.conversation.copy_log()

    async def save(self, call_id: str, log: ConversationLog) -> None:
        stored = self._sessions.get(call_id)
        if stored is None:
            raise StoreError(f"No stored session for call: {call_id}")
        stored.conversation = log.copy_log()

    async def save_summary(self, call_id: str, summary: str) -> None:
        stored = self._sessions.get(call_id)
        if stored is None:
            raise StoreError(f"No stored session for call: {call_id}")
        stored.summary = summary

    def get(self, call_id: str) -> Optional[StoredSession]:
        return self._sessions.get(call_id)


class PostgresSessionStore(SessionStore):
    """Session store backed by the `sessions` table."""

    def __init__(self, pool: PostgresPool):
        self._pool = pool

    @staticmethod
    def _row_to_session(row) -> StoredSession:
        conversation = row["conversation"]
        if isinstance(conversation, str):
            conversation = json.loads(conversation)
        return StoredSession(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            call_id=row["twilio_call_sid"],
            websocket_id=row["websocket_id"],
            conversation=ConversationLog.from_messages(conversation),
            summary=row["summary"],
            created_at=row["created_at"],
        )

    async def create_if_absent(
        self, user_id: str, call_id: str, websocket_id: Optional[str] = None
    ) -> StoredSession:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM sessions WHERE twilio_call_sid = $1", call_id
            )
            if row is None:
                row = await conn.fetchrow(
                    """
                    INSERT INTO sessions (user_id, twilio_call_sid, websocket_id)
                    VALUES ($1, $2, $3)
                    RETURNING *
                    """,
                    uuid.UUID(user_id),
                    call_id,
                    websocket_id,
                )
                logger.info(f"Created session {row['id']} for call: {call_id}")
        return self._row_to_session(row)

    async def load(self, call_id: str) -> Optional[ConversationLog]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT conversation FROM sessions WHERE twilio_call_sid = $1", call_id
            )
        if row is None:
            return None
        conversation = row["conversation"]
        if isinstance(conversation, str):
            conversation = json.loads(conversation)
        return ConversationLog.from_messages(conversation)

    async def save(self, call_id: str, log: ConversationLog) -> None:
        async with self._pool.acquire() as conn:
            status = await conn.execute(
                """
                UPDATE sessions SET conversation = $1::jsonb, updated_at = now()
                WHERE twilio_call_sid = $2
                """,
                log.to_json(),
                call_id,
            )
        if status.endswith(" 0"):
            raise StoreError(f"No stored session for call: {call_id}")

    async def save_summary(self, call_id: str, summary: str) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE sessions SET summary = $1, updated_at = now()
                WHERE twilio_call_sid = $2
                """,
                summary,
                call_id,
            )

    async def close(self) -> None:
        await self._pool.close()
