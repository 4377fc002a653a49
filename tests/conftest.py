import logging

import pytest
from unittest.mock import AsyncMock

from fastapi import WebSocket

from relay_agent.models.conversation import ConversationLog, Role, Turn


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture
def websocket():
    """A mocked FastAPI WebSocket that records what is sent on it"""
    return AsyncMock(spec=WebSocket)


@pytest.fixture
def seeded_log():
    return ConversationLog(turns=[Turn(role=Role.SYSTEM, content="You are a life coach.")])
