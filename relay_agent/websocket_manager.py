"""
WebSocket connection manager for Twilio ConversationRelay integration.

This module implements the server side of the ConversationRelay WebSocket protocol,
providing the infrastructure to:
- Accept and manage one WebSocket connection per call
- Route incoming messages to the matching handler function
- Bind each connection to the call SID announced by its setup message
- End the call's session when the connection closes

Messages of one connection are handled strictly in arrival order; only reply
generation continues in the background between messages.
"""

import json
import logging
import socket
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from relay_agent.bot.turn_engine import TurnEngine
from relay_agent.config.constants import (
    LOGGER_NAME,
    MESSAGE_TYPE_DTMF,
    MESSAGE_TYPE_ERROR,
    MESSAGE_TYPE_INTERRUPT,
    MESSAGE_TYPE_PROMPT,
    MESSAGE_TYPE_SETUP,
)
from relay_agent.handlers.activity_handlers import handle_dtmf, handle_error_report
from relay_agent.handlers.prompt_handlers import handle_interrupt, handle_prompt
from relay_agent.handlers.session_handlers import handle_setup
from relay_agent.models.session import CallSession

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[
    [Dict[str, Any], WebSocket, Optional[str], TurnEngine],
    Awaitable[Any],
]


class WebSocketManager:
    """Manages ConversationRelay WebSocket connections and routes their messages.

    Each message type is routed to a specific handler function based on the
    message's "type" field. Unknown types are logged and ignored.
    """

    def __init__(self, turn_engine: TurnEngine):
        self.turn_engine = turn_engine

        self.handlers: Dict[str, HandlerFunc] = {
            MESSAGE_TYPE_SETUP: handle_setup,
            MESSAGE_TYPE_PROMPT: handle_prompt,
            MESSAGE_TYPE_INTERRUPT: handle_interrupt,
            MESSAGE_TYPE_DTMF: handle_dtmf,
            MESSAGE_TYPE_ERROR: handle_error_report,
        }

    async def _optimize_socket(self, websocket: WebSocket) -> None:
        """Disable Nagle's algorithm so text tokens are flushed immediately."""
        try:
            client = websocket.client
            if hasattr(client, "sock") and client.sock is not None:
                client.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info("Optimized socket: TCP_NODELAY enabled")
        except Exception as e:
            logger.warning(f"Could not optimize socket: {e}")

    async def dispatch(
        self, message: Dict[str, Any], websocket: WebSocket, call_id: Optional[str]
    ) -> Optional[str]:
        """Route one decoded message to its handler.

        Args:
            message: The decoded message
            websocket: The connection the message arrived on
            call_id: Call SID currently bound to the connection

        Returns:
            The call SID bound to the connection after the message
        """
        message_type = message.get("type")
        logger.info(
            f"Received message type: {message_type}"
            + (f" for call: {call_id}" if call_id else "")
        )

        handler = self.handlers.get(message_type)
        if handler is None:
            logger.warning(f"Unhandled message type received: {message_type}")
            return call_id

        result = await handler(message, websocket, call_id, self.turn_engine)
        if message_type == MESSAGE_TYPE_SETUP and isinstance(result, CallSession):
            return result.call_id
        return call_id

    async def handle_websocket(self, websocket: WebSocket):
        """Handle a WebSocket connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts the WebSocket connection
        2. Processes incoming messages in a loop, one at a time
        3. Routes each message to the appropriate handler based on type
        4. Ends the call's session when the connection goes away
        """
        await websocket.accept()
        await self._optimize_socket(websocket)
        logger.info("WebSocket connection established")
        call_id: Optional[str] = None

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message_dict = json.loads(data)
                except json.JSONDecodeError as e:
                    logger.error(f"Discarding malformed message: {e}")
                    continue
                if not isinstance(message_dict, dict):
                    logger.error("Discarding message that is not a JSON object")
                    continue

                call_id = await self.dispatch(message_dict, websocket, call_id)

        except WebSocketDisconnect:
            logger.info("WebSocket disconnected" + (f" for call: {call_id}" if call_id else ""))
        except Exception as e:
            logger.error(f"Error in WebSocket connection: {e}", exc_info=True)
        finally:
            if call_id:
                await self.turn_engine.end_call(call_id)
                logger.info(f"Call session removed during cleanup: {call_id}")
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"WebSocket already closed: {e}")
            logger.info("WebSocket connection closed")
