"""
Owns the in-flight reply generation of each call.

A call has at most one live generation. Starting a new one cancels the previous
one through its CancellationHandle; cancellation is cooperative, so a superseded
generation keeps running until its next checkpoint and then stops without
emitting or saving anything. When a generation exits it releases the session's
handle only if that handle is still the current one.
"""

import asyncio
import logging
from typing import Optional

from fastapi import WebSocket

from relay_agent.bot.response_generator import ResponseGenerator, send_message
from relay_agent.bot.turn_classifier import TurnCompletionClassifier, TurnDecision
from relay_agent.config.constants import DEFAULT_NOT_DONE_WAIT_SECONDS, LOGGER_NAME
from relay_agent.errors import CompletionError, StoreError
from relay_agent.models.message_schemas import error_notice
from relay_agent.models.session import CallSession, CancellationHandle, SessionState

logger = logging.getLogger(LOGGER_NAME)

GENERATION_FAILED_MESSAGE = "Sorry, I could not come up with a response."
PERSIST_FAILED_MESSAGE = "The conversation could not be saved."


class GenerationController:
    """
    Runs classify, wait and generate for a call as one cancellable background task.

    Args:
        classifier: Decides whether the caller has finished speaking
        generator: Produces and persists the assistant reply
        wait_seconds: Length of the countdown used when the caller is not done
        poll_interval: Seconds slept between two checks of the cancellation flag
    """

    def __init__(
        self,
        classifier: TurnCompletionClassifier,
        generator: ResponseGenerator,
        wait_seconds: int = DEFAULT_NOT_DONE_WAIT_SECONDS,
        poll_interval: float = 1.0,
    ):
        self.classifier = classifier
        self.generator = generator
        self.wait_seconds = wait_seconds
        self.poll_interval = poll_interval

    def cancel(self, session: CallSession) -> bool:
        """
        Request cancellation of the session's in-flight generation, if any.

        Returns:
            True if a running generation was cancelled by this call
        """
        handle = session.generation_cancel
        if handle is None:
            return False
        cancelled = handle.cancel()
        if cancelled:
            logger.info(
                f"Cancelling generation {handle.generation} for call: {session.call_id}"
            )
        return cancelled

    def begin_generation(self, session: CallSession, websocket: WebSocket) -> asyncio.Task:
        """
        Start a new generation for the session, superseding any previous one.

        The returned task resolves to the reply text, or None when the generation
        was cancelled or failed.
        """
        self.cancel(session)
        handle = session.new_cancellation_handle()
        session.state = SessionState.GENERATING

        task = asyncio.create_task(
            self._run(session, handle, websocket),
            name=f"generation-{session.call_id}-{handle.generation}",
        )
        session.generation_task = task
        logger.info(f"Started generation {handle.generation} for call: {session.call_id}")
        return task

    async def _run(
        self, session: CallSession, handle: CancellationHandle, websocket: WebSocket
    ) -> Optional[str]:
        try:
            decision = await self.classifier.is_done(session.log.copy_log())
            if handle.cancelled:
                return None

            if decision == TurnDecision.NOT_DONE:
                if not await self._wait_for_more_speech(handle):
                    return None

            return await self.generator.generate(session, handle, websocket)

        except CompletionError as e:
            logger.error(f"Generation {handle.generation} failed for call {session.call_id}: {e}")
            await self._notify_error(handle, websocket, GENERATION_FAILED_MESSAGE)
        except StoreError as e:
            logger.error(f"Could not persist reply for call {session.call_id}: {e}")
            await self._notify_error(handle, websocket, PERSIST_FAILED_MESSAGE)
        except Exception as e:
            logger.error(
                f"Unexpected error in generation {handle.generation} for call {session.call_id}: {e}",
                exc_info=True,
            )
            await self._notify_error(handle, websocket, GENERATION_FAILED_MESSAGE)
        finally:
            session.release(handle)
        return None

    async def _wait_for_more_speech(self, handle: CancellationHandle) -> bool:
        """
        Count down before replying, checking the cancellation flag every tick.

        Returns:
            False if the generation was cancelled during the countdown
        """
        logger.info(f"Waiting {self.wait_seconds} seconds...")
        for remaining in range(self.wait_seconds, 0, -1):
            if handle.cancelled:
                logger.info("Processing cancelled, stopping countdown")
                return False
            logger.debug(f"{remaining} seconds...")
            await asyncio.sleep(self.poll_interval)
        return not handle.cancelled

    @staticmethod
    async def _notify_error(
        handle: CancellationHandle, websocket: WebSocket, message: str
    ) -> None:
        if handle.cancelled:
            return
        try:
            await send_message(websocket, error_notice(message))
        except Exception as e:
            logger.warning(f"Could not send error notice: {e}")
