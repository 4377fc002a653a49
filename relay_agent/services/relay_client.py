"""
WebSocket client that plays the ConversationRelay side of a call.

This module provides a client for driving the agent's /ws endpoint the way
Twilio ConversationRelay does: it announces the call with a setup message, sends
transcribed prompts and interrupts, and collects the text tokens of each reply.
It is used for local testing without a phone line.
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

import websockets

from relay_agent.config.constants import LOGGER_NAME, MESSAGE_TYPE_ERROR, MESSAGE_TYPE_TEXT
from relay_agent.errors import RelayAgentError
from relay_agent.models.message_schemas import (
    InterruptMessage,
    PromptMessage,
    SetupMessage,
)

logger = logging.getLogger(LOGGER_NAME)


class RelayClient:
    """
    Client that simulates Twilio ConversationRelay against the agent server.

    Messages are built from the same pydantic models the server validates with.
    """

    def __init__(self, url: str, phone_number: str = "+15555550100"):
        """
        Initialize the relay client.

        Args:
            url: The WebSocket URL of the agent, e.g. ws://localhost:8080/ws
            phone_number: Caller number announced in the setup message
        """
        self.url = url
        self.phone_number = phone_number
        self.websocket = None
        self.call_sid: Optional[str] = None

    async def connect(self) -> bool:
        """
        Establish a connection to the agent's WebSocket endpoint.

        Returns:
            True if connection was successful, False otherwise
        """
        try:
            self.websocket = await websockets.connect(self.url)
            logger.info(f"Connected to relay agent at {self.url}")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to relay agent: {e}")
            return False

    async def _send(self, payload: str) -> bool:
        if not self.websocket:
            logger.error("Cannot send message: Not connected")
            return False
        await self.websocket.send(payload)
        return True

    async def send_setup(self, call_sid: Optional[str] = None) -> Optional[str]:
        """
        Announce a new call.

        Args:
            call_sid: Call SID to use; a random one is generated when omitted

        Returns:
            The call SID, or None if not connected
        """
        self.call_sid = call_sid or f"CA{uuid.uuid4().hex}"
        message = SetupMessage(
            type="setup",
            callSid=self.call_sid,
            sessionId=f"VX{uuid.uuid4().hex}",
            from_=self.phone_number,
            phoneNumber=self.phone_number,
        )
        if not await self._send(message.model_dump_json(by_alias=True, exclude_none=True)):
            return None
        logger.info(f"Sent setup for call: {self.call_sid}")
        return self.call_sid

    async def send_prompt(self, text: str) -> bool:
        """Send a transcribed user utterance."""
        message = PromptMessage(type="prompt", voicePrompt=text)
        sent = await self._send(message.model_dump_json(exclude_none=True))
        if sent:
            logger.info(f"Sent prompt: {text}")
        return sent

    async def send_interrupt(self, spoken_prefix: str) -> bool:
        """Report that the caller talked over the reply after spoken_prefix was played."""
        message = InterruptMessage(type="interrupt", utteranceUntilInterrupt=spoken_prefix)
        sent = await self._send(message.model_dump_json(exclude_none=True))
        if sent:
            logger.info(f"Sent interrupt after: {spoken_prefix}")
        return sent

    async def receive_message(self) -> Dict[str, Any]:
        """Receive and decode the next message from the agent."""
        data = await self.websocket.recv()
        return json.loads(data)

    async def receive_turn(self) -> str:
        """
        Collect the text tokens of one reply.

        Returns:
            The reply text, assembled from tokens until the one marked last
        """
        tokens: List[str] = []
        while True:
            message = await self.receive_message()
            message_type = message.get("type")
            if message_type == MESSAGE_TYPE_TEXT:
                tokens.append(message.get("token", ""))
                if message.get("last"):
                    break
            elif message_type == MESSAGE_TYPE_ERROR:
                raise RelayAgentError(message.get("message", "Relay agent reported an error"))
            else:
                logger.warning(f"Ignoring unexpected message type: {message_type}")
        return "".join(tokens)

    async def close(self) -> None:
        """Close the WebSocket connection, which ends the call."""
        if self.websocket:
            await self.websocket.close()
            self.websocket = None
            logger.info("Relay client connection closed")
