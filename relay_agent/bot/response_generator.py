"""
Produces the assistant's reply for a call and streams it to ConversationRelay.

The generator checks the generation's CancellationHandle every time it resumes
after waiting on the completion service. Once the handle is cancelled nothing
more is sent to the caller and no assistant turn is written to the log.
"""

import logging
from contextlib import aclosing
from typing import List, Optional

from fastapi import WebSocket

from relay_agent.config.constants import DEFAULT_RESPONSE_MODEL, LOGGER_NAME
from relay_agent.models.conversation import Role, Turn
from relay_agent.models.message_schemas import OutgoingMessage, end_of_turn, partial_text
from relay_agent.models.session import CallSession, CancellationHandle
from relay_agent.services.completion_client import CompletionClient
from relay_agent.services.session_store import SessionStore

logger = logging.getLogger(LOGGER_NAME)


async def send_message(websocket: WebSocket, message: OutgoingMessage) -> None:
    await websocket.send_text(message.model_dump_json())


class ResponseGenerator:
    """
    Invokes the completion service for a call's log and emits the reply.

    In streaming mode each fragment is sent as a partial text message as soon as
    it arrives, followed by an end-of-turn message. Otherwise the whole reply is
    sent as a single final text message.
    """

    def __init__(
        self,
        client: CompletionClient,
        store: SessionStore,
        model: str = DEFAULT_RESPONSE_MODEL,
        streaming: bool = True,
    ):
        self.client = client
        self.store = store
        self.model = model
        self.streaming = streaming

    async def generate(
        self,
        session: CallSession,
        handle: CancellationHandle,
        websocket: WebSocket,
    ) -> Optional[str]:
        """
        Generate, emit and persist one assistant turn.

        Args:
            session: The call session whose log is answered
            handle: Cancellation handle owned by this generation
            websocket: Connection the reply is streamed to

        Returns:
            The reply text, or None if the generation was cancelled

        Raises:
            CompletionError: If the completion service fails
            StoreError: If the updated log cannot be persisted
        """
        messages = session.log.to_messages()

        if self.streaming:
            reply = await self._stream_reply(messages, handle, websocket)
        else:
            reply = await self._whole_reply(messages, handle, websocket)

        if reply is None:
            return None

        if handle.cancelled or not session.is_current(handle):
            logger.info(
                f"Generation {handle.generation} cancelled before saving for call: {session.call_id}"
            )
            return None

        session.log.append(Turn(role=Role.ASSISTANT, content=reply))
        await self.store.save(session.call_id, session.log)
        logger.info(f"Assistant message: \"{reply}\"")
        return reply

    async def _stream_reply(
        self, messages: List[dict], handle: CancellationHandle, websocket: WebSocket
    ) -> Optional[str]:
        segments: List[str] = []
        async with aclosing(self.client.stream(messages, model=self.model)) as fragments:
            async for fragment in fragments:
                if handle.cancelled:
                    logger.info("Processing cancelled during streaming, stopping response")
                    return None
                await send_message(websocket, partial_text(fragment))
                segments.append(fragment)

        if handle.cancelled:
            logger.info("Processing cancelled at end of stream, discarding response")
            return None

        await send_message(websocket, end_of_turn())
        return "".join(segments)

    async def _whole_reply(
        self, messages: List[dict], handle: CancellationHandle, websocket: WebSocket
    ) -> Optional[str]:
        content = await self.client.complete(messages, model=self.model)
        if handle.cancelled:
            logger.info("Processing cancelled while waiting for completion, discarding response")
            return None

        await send_message(websocket, end_of_turn(content))
        return content
