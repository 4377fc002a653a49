"""
Handles informational events from Twilio ConversationRelay.

Keypad presses and errors reported by ConversationRelay do not change the
conversation; they are validated and logged against the call.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket
from pydantic import ValidationError

from relay_agent.bot.turn_engine import TurnEngine
from relay_agent.config.constants import LOGGER_NAME
from relay_agent.models.message_schemas import DtmfMessage, ErrorReportMessage

logger = logging.getLogger(LOGGER_NAME)


async def handle_dtmf(
    message: Dict[str, Any],
    websocket: WebSocket,
    call_id: Optional[str],
    engine: TurnEngine,
) -> None:
    """Log a keypad digit pressed by the caller."""
    try:
        dtmf = DtmfMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid dtmf message: {e}")
        return None

    logger.info(f"DTMF digit {dtmf.digit} pressed on call: {call_id}")
    return None


async def handle_error_report(
    message: Dict[str, Any],
    websocket: WebSocket,
    call_id: Optional[str],
    engine: TurnEngine,
) -> None:
    """Log an error reported by ConversationRelay."""
    try:
        report = ErrorReportMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid error message: {e}")
        return None

    logger.error(f"ConversationRelay reported an error on call {call_id}: {report.description}")
    return None
