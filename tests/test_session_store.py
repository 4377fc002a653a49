import asyncio
import json
import uuid

import pytest
from unittest.mock import AsyncMock, MagicMock

import asyncpg

from relay_agent.errors import StoreError
from relay_agent.models.conversation import ConversationLog, Role, Turn
from relay_agent.services.postgres import PostgresPool
from relay_agent.services.session_store import InMemorySessionStore, PostgresSessionStore
from relay_agent.services.user_directory import InMemoryUserDirectory, PostgresUserDirectory


def make_pool(conn):
    """Mock PostgresPool whose acquire() yields the given connection."""
    pool = MagicMock()
    acquired = MagicMock()
    acquired.__aenter__ = AsyncMock(return_value=conn)
    acquired.__aexit__ = AsyncMock(return_value=False)
    pool.acquire.return_value = acquired
    pool.close = AsyncMock()
    return pool


class TestInMemorySessionStore:

    @pytest.mark.asyncio
    async def test_create_if_absent_is_idempotent(self):
        store = InMemorySessionStore()

        first = await store.create_if_absent("user-1", "CA1", "ws-1")
        second = await store.create_if_absent("user-2", "CA1", "ws-2")

        assert second is first
        assert second.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        store = InMemorySessionStore()
        await store.create_if_absent("user-1", "CA1")
        log = ConversationLog(turns=[Turn(role=Role.SYSTEM, content="sys")])

        await store.save("CA1", log)
        log.append(Turn(role=Role.USER, content="not saved"))

        assert len((await store.load("CA1")).turns) == 1

    @pytest.mark.asyncio
    async def test_unknown_call(self):
        store = InMemorySessionStore()

        assert await store.load("CA404") is None
        with pytest.raises(StoreError):
            await store.save("CA404", ConversationLog())
        with pytest.raises(StoreError):
            await store.save_summary("CA404", "summary")


class TestPostgresSessionStore:

    @pytest.mark.asyncio
    async def test_create_inserts_when_missing(self):
        user_id = str(uuid.uuid4())
        row = {
            "id": uuid.uuid4(),
            "user_id": uuid.UUID(user_id),
            "twilio_call_sid": "CA1",
            "websocket_id": "ws-1",
            "conversation": None,
            "summary": None,
            "created_at": None,
        }
        conn = MagicMock()
        conn.fetchrow = AsyncMock(side_effect=[None, row])
        store = PostgresSessionStore(make_pool(conn))

        stored = await store.create_if_absent(user_id, "CA1", "ws-1")

        assert stored.call_id == "CA1"
        assert stored.user_id == user_id
        assert stored.conversation.is_empty()
        insert_args = conn.fetchrow.await_args_list[1].args
        assert "INSERT INTO sessions" in insert_args[0]
        assert insert_args[1:] == (uuid.UUID(user_id), "CA1", "ws-1")

    @pytest.mark.asyncio
    async def test_load_decodes_json_conversation(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(
            return_value={"conversation": json.dumps([{"role": "system", "content": "sys"}])}
        )
        store = PostgresSessionStore(make_pool(conn))

        log = await store.load("CA1")

        assert log.turns == [Turn(role=Role.SYSTEM, content="sys")]

    @pytest.mark.asyncio
    async def test_save_writes_jsonb(self):
        conn = MagicMock()
        conn.execute = AsyncMock(return_value="UPDATE 1")
        store = PostgresSessionStore(make_pool(conn))
        log = ConversationLog(turns=[Turn(role=Role.USER, content="hi")])

        await store.save("CA1", log)

        query, payload, call_id = conn.execute.await_args.args
        assert "conversation = $1::jsonb" in query
        assert json.loads(payload) == [{"role": "user", "content": "hi"}]
        assert call_id == "CA1"

    @pytest.mark.asyncio
    async def test_save_unknown_call_raises(self):
        conn = MagicMock()
        conn.execute = AsyncMock(return_value="UPDATE 0")
        store = PostgresSessionStore(make_pool(conn))

        with pytest.raises(StoreError):
            await store.save("CA404", ConversationLog())


class TestUserDirectory:

    @pytest.mark.asyncio
    async def test_in_memory_user_is_stable_per_phone(self):
        users = InMemoryUserDirectory()

        first = await users.get_or_create_user("+15555550100")

        assert await users.get_or_create_user("+15555550100") == first
        assert await users.get_or_create_user("+15555550199") != first

    @pytest.mark.asyncio
    async def test_postgres_user_returns_existing_id(self):
        user_id = uuid.uuid4()
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value={"id": user_id})
        users = PostgresUserDirectory(make_pool(conn))

        assert await users.get_or_create_user("+15555550100") == str(user_id)
        conn.fetchrow.assert_awaited_once()


class TestPostgresPool:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            asyncpg.InterfaceError("cannot perform operation: another operation is in progress"),
            asyncio.TimeoutError(),
            ConnectionResetError("connection reset by peer"),
        ],
    )
    async def test_connection_errors_become_store_errors(self, monkeypatch, error):
        conn = MagicMock()
        conn.execute = AsyncMock(side_effect=error)
        monkeypatch.setattr(asyncpg, "create_pool", AsyncMock(return_value=make_pool(conn)))
        store = PostgresSessionStore(PostgresPool(dsn="postgresql://test@localhost/test"))

        with pytest.raises(StoreError) as excinfo:
            await store.save("CA1", ConversationLog())

        assert excinfo.value.cause is error

    @pytest.mark.asyncio
    async def test_connect_failure_becomes_store_error(self, monkeypatch):
        monkeypatch.setattr(asyncpg, "create_pool", AsyncMock(side_effect=OSError("refused")))
        pool = PostgresPool(dsn="postgresql://test@localhost/test")

        with pytest.raises(StoreError):
            async with pool.acquire():
                pass
        assert not pool.is_connected
