"""
Handles caller speech events from Twilio ConversationRelay.

This module processes the prompt messages that carry the caller's transcribed
utterances and the interrupt messages sent when the caller talks over the
assistant.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket
from pydantic import ValidationError

from relay_agent.bot.turn_engine import TurnEngine
from relay_agent.config.constants import LOGGER_NAME
from relay_agent.models.message_schemas import InterruptMessage, PromptMessage

logger = logging.getLogger(LOGGER_NAME)


async def handle_prompt(
    message: Dict[str, Any],
    websocket: WebSocket,
    call_id: Optional[str],
    engine: TurnEngine,
) -> Optional[asyncio.Task]:
    """
    Handle a prompt message carrying a transcribed user utterance.

    The reply is generated in the background so that the next message from the
    caller can cancel it.

    Args:
        message: The prompt message
        websocket: The WebSocket connection of the call
        call_id: Call SID bound to this connection by the setup message
        engine: The turn engine

    Returns:
        The generation task, or None if the prompt was dropped
    """
    try:
        prompt = PromptMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid prompt message: {e}")
        return None

    if not prompt.last:
        logger.debug(f"Ignoring partial transcript: {prompt.voicePrompt}")
        return None

    logger.info(f"Received user input: {prompt.voicePrompt}")
    if call_id is None:
        logger.error("Prompt received before setup, dropping it")
        return None

    return await engine.handle_prompt(call_id, prompt.voicePrompt, websocket)


async def handle_interrupt(
    message: Dict[str, Any],
    websocket: WebSocket,
    call_id: Optional[str],
    engine: TurnEngine,
) -> bool:
    """
    Handle an interrupt message.

    The utteranceUntilInterrupt field holds the assistant text that was played
    before the caller started talking; the log is cut back to it.

    Returns:
        True if the conversation log was changed
    """
    try:
        interrupt = InterruptMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid interrupt message: {e}")
        return False

    logger.info(
        f"Handling interruption; last utterance: {interrupt.utteranceUntilInterrupt}"
    )
    if call_id is None:
        logger.error("Interrupt received before setup, dropping it")
        return False

    return await engine.handle_interrupt(
        call_id, interrupt.utteranceUntilInterrupt, websocket
    )
