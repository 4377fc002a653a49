"""
Manages the call session lifecycle with Twilio ConversationRelay.

This module handles the setup message that ConversationRelay sends once the call's
WebSocket is connected, creating the call's session in the turn engine.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket
from pydantic import ValidationError

from relay_agent.bot.response_generator import send_message
from relay_agent.bot.turn_engine import TurnEngine
from relay_agent.config.constants import LOGGER_NAME
from relay_agent.models.message_schemas import SetupMessage, error_notice
from relay_agent.models.session import CallSession

logger = logging.getLogger(LOGGER_NAME)


async def handle_setup(
    message: Dict[str, Any],
    websocket: WebSocket,
    call_id: Optional[str],
    engine: TurnEngine,
) -> Optional[CallSession]:
    """
    Handle the setup message from ConversationRelay.

    The message identifies the call (callSid) and the caller. The caller's user
    record and the stored session are created if needed, and the conversation is
    seeded with the system prompt on first use.

    Args:
        message: The setup message
        websocket: The WebSocket connection of the call
        call_id: Call SID already bound to this connection, if any
        engine: The turn engine

    Returns:
        The call's live session, or None if setup failed
    """
    try:
        setup = SetupMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid setup message: {e}")
        await send_message(websocket, error_notice("Invalid setup message"))
        return None

    if call_id is not None and call_id != setup.callSid:
        logger.warning(
            f"Connection bound to call {call_id} received setup for call {setup.callSid}, ignoring"
        )
        return None

    logger.info(f"Setup for call: {setup.callSid}")
    websocket_id = setup.sessionId or str(id(websocket))
    return await engine.handle_setup(
        setup.callSid, setup.caller_identity, websocket, websocket_id=websocket_id
    )
