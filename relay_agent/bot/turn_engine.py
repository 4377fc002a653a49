"""
Per-call conversation turn engine.

The TurnEngine is the state machine behind the ConversationRelay handlers. It
creates a CallSession on setup, folds each user prompt into the log and starts a
reply, reconciles the log when the caller interrupts, and tears the session down
when the connection closes.

Events for one call are delivered one at a time by that call's connection loop;
only the reply generation runs in the background, where the next event can
cancel it.
"""

import asyncio
import logging
from typing import List, Optional, Set

from fastapi import WebSocket

from relay_agent.bot.aggregator import aggregate_utterances
from relay_agent.bot.generation_controller import PERSIST_FAILED_MESSAGE, GenerationController
from relay_agent.bot.reconciler import reconcile_interruption
from relay_agent.bot.response_generator import ResponseGenerator, send_message
from relay_agent.bot.summarizer import ConversationSummarizer
from relay_agent.bot.turn_classifier import TurnCompletionClassifier
from relay_agent.config.constants import LOGGER_NAME
from relay_agent.config.settings import SESSION_STORE_POSTGRES, Settings
from relay_agent.errors import StoreError
from relay_agent.models.conversation import ConversationLog, Role, Turn
from relay_agent.models.message_schemas import error_notice
from relay_agent.models.session import CallSession, SessionRegistry, SessionState
from relay_agent.services.completion_client import CompletionClient, OpenAICompletionClient
from relay_agent.services.postgres import PostgresPool
from relay_agent.services.prompt_source import PromptSource
from relay_agent.services.session_store import (
    InMemorySessionStore,
    PostgresSessionStore,
    SessionStore,
)
from relay_agent.services.user_directory import (
    InMemoryUserDirectory,
    PostgresUserDirectory,
    UserDirectory,
)

logger = logging.getLogger(LOGGER_NAME)

SETUP_FAILED_MESSAGE = "The call could not be set up."


class TurnEngine:
    """
    Drives the turn state machine of every live call.

    Args:
        registry: Live sessions keyed by call SID
        store: Durable session storage
        users: Caller to user id lookup
        prompts: Source of the system prompt
        controller: Owner of each call's in-flight generation
        summarizer: Optional end-of-call summarizer
        aggregate_opening: Merge user prompts that arrive before the first reply
        completion_client: Client closed together with the engine
    """

    def __init__(
        self,
        registry: SessionRegistry,
        store: SessionStore,
        users: UserDirectory,
        prompts: PromptSource,
        controller: GenerationController,
        summarizer: Optional[ConversationSummarizer] = None,
        aggregate_opening: bool = True,
        completion_client: Optional[CompletionClient] = None,
    ):
        self.registry = registry
        self.store = store
        self.users = users
        self.prompts = prompts
        self.controller = controller
        self.summarizer = summarizer
        self.aggregate_opening = aggregate_opening
        self.completion_client = completion_client
        self._summary_tasks: Set[asyncio.Task] = set()

    def _live_session(self, call_id: Optional[str], event: str) -> Optional[CallSession]:
        session = self.registry.get(call_id)
        if session is None or session.is_closed:
            logger.warning(f"Dropping {event} event: no live session for call: {call_id}")
            return None
        return session

    async def _persist(self, session: CallSession, websocket: WebSocket) -> bool:
        """
        Save the session's log, reporting a failure to the caller's connection.

        The in-memory log keeps the change either way; the next successful save
        brings the store back in line.
        """
        try:
            await self.store.save(session.call_id, session.log)
            return True
        except StoreError as e:
            logger.error(f"Failed to persist conversation for call {session.call_id}: {e}")
            try:
                await send_message(websocket, error_notice(PERSIST_FAILED_MESSAGE))
            except Exception as send_error:
                logger.warning(f"Could not send error notice: {send_error}")
            return False

    async def handle_setup(
        self,
        call_id: str,
        caller: str,
        websocket: WebSocket,
        websocket_id: Optional[str] = None,
    ) -> Optional[CallSession]:
        """
        Create (or return) the live session for a call.

        Loads the stored conversation for the call and seeds it with the system
        prompt when it is empty.

        Returns:
            The live session, or None if the stores could not be reached
        """
        existing = self.registry.get(call_id)
        if existing is not None and not existing.is_closed:
            logger.info(f"Setup repeated for live call: {call_id}")
            return existing

        try:
            user_id = await self.users.get_or_create_user(caller)
            await self.store.create_if_absent(user_id, call_id, websocket_id)
            log = await self.store.load(call_id) or ConversationLog()
        except StoreError as e:
            logger.error(f"Setup failed for call {call_id}: {e}")
            try:
                await send_message(websocket, error_notice(SETUP_FAILED_MESSAGE))
            except Exception as send_error:
                logger.warning(f"Could not send error notice: {send_error}")
            return None

        session = CallSession(call_id=call_id, user_id=user_id, log=log)
        if session.log.is_empty():
            session.log.append(Turn(role=Role.SYSTEM, content=self.prompts.system_prompt()))
            await self._persist(session, websocket)

        session.state = SessionState.READY
        registered = self.registry.add(session)
        logger.info(f"Session ready for call: {call_id} ({len(registered.log.turns)} turns)")
        return registered

    async def handle_prompt(
        self, call_id: Optional[str], text: str, websocket: WebSocket
    ) -> Optional[asyncio.Task]:
        """
        Fold a user utterance into the log and start a reply.

        Any reply still in flight is cancelled first, so its text never reaches
        the log. The utterance is merged with the other user turns since the
        assistant last spoke before the new generation starts.

        Returns:
            The generation task, or None if the event was dropped
        """
        session = self._live_session(call_id, "prompt")
        if session is None:
            return None
        if not text or not text.strip():
            logger.info(f"Ignoring empty prompt for call: {call_id}")
            return None

        self.controller.cancel(session)
        session.log.append(Turn(role=Role.USER, content=text))
        session.log = aggregate_utterances(session.log, include_opening=self.aggregate_opening)
        await self._persist(session, websocket)

        return self.controller.begin_generation(session, websocket)

    async def handle_interrupt(
        self, call_id: Optional[str], spoken_prefix: str, websocket: WebSocket
    ) -> bool:
        """
        Cut the log back to what the caller heard before interrupting.

        Also cancels the call's in-flight generation.

        Returns:
            True if the log was changed
        """
        session = self._live_session(call_id, "interrupt")
        if session is None:
            return False

        self.controller.cancel(session)
        reconciled = reconcile_interruption(session.log, spoken_prefix)
        if reconciled is session.log:
            return False

        session.log = reconciled
        await self._persist(session, websocket)
        return True

    async def end_call(self, call_id: Optional[str]) -> Optional[CallSession]:
        """
        Remove the call's session and stop its generation.

        Later events for the call are dropped. When a summarizer is configured the
        finished conversation is summarized in a background task; see
        wait_for_summaries().

        Returns:
            The removed session, or None if the call had no session
        """
        session = self.registry.remove(call_id)
        if session is None:
            return None

        self.controller.cancel(session)
        session.state = SessionState.CLOSED
        logger.info(f"Session closed for call: {call_id}")

        if self.summarizer is not None:
            task = asyncio.create_task(
                self.summarizer.summarize(
                    session.call_id, session.log.copy_log(), session.started_at
                ),
                name=f"summary-{session.call_id}",
            )
            self._summary_tasks.add(task)
            task.add_done_callback(self._summary_tasks.discard)
        return session

    async def wait_for_summaries(self) -> None:
        """Wait until every scheduled end-of-call summary has finished."""
        if self._summary_tasks:
            await asyncio.gather(*self._summary_tasks)

    def active_calls(self) -> List[str]:
        return self.registry.call_ids()

    async def aclose(self) -> None:
        for call_id in self.registry.call_ids():
            session = self.registry.remove(call_id)
            if session is not None:
                self.controller.cancel(session)
                session.state = SessionState.CLOSED
        await self.wait_for_summaries()
        await self.store.close()
        if self.completion_client is not None:
            await self.completion_client.aclose()


def build_turn_engine(settings: Settings) -> TurnEngine:
    """Wire a TurnEngine and its collaborators from settings."""
    client = OpenAICompletionClient(
        api_key=settings.openai_api_key, default_model=settings.response_model
    )

    if settings.session_store == SESSION_STORE_POSTGRES:
        pool = PostgresPool()
        store: SessionStore = PostgresSessionStore(pool)
        users: UserDirectory = PostgresUserDirectory(pool)
    else:
        store = InMemorySessionStore()
        users = InMemoryUserDirectory()

    classifier = TurnCompletionClassifier(client, model=settings.classifier_model)
    generator = ResponseGenerator(
        client,
        store,
        model=settings.response_model,
        streaming=settings.stream_responses,
    )
    controller = GenerationController(
        classifier, generator, wait_seconds=settings.not_done_wait_seconds
    )
    summarizer = None
    if settings.summarize_on_close:
        summarizer = ConversationSummarizer(
            client, store, model=settings.summary_model, timezone=settings.prompt_timezone
        )

    return TurnEngine(
        registry=SessionRegistry(),
        store=store,
        users=users,
        prompts=PromptSource(settings.prompts_dir, timezone=settings.prompt_timezone),
        controller=controller,
        summarizer=summarizer,
        aggregate_opening=settings.aggregate_opening,
        completion_client=client,
    )
