"""
Chat-completion client used by the turn engine.

The engine only needs two capabilities from a language model: produce one whole
completion for a list of chat messages, or stream it as text fragments. The
OpenAI implementation creates its AsyncOpenAI client lazily so the application
can be imported and tested without credentials.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from relay_agent.config.constants import DEFAULT_RESPONSE_MODEL, LOGGER_NAME
from relay_agent.errors import CompletionError

logger = logging.getLogger(LOGGER_NAME)

ChatMessages = List[Dict[str, str]]


class CompletionClient(ABC):
    """Interface for a chat-completion capability."""

    @abstractmethod
    async def complete(
        self,
        messages: ChatMessages,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Return the full text of one completion."""

    @abstractmethod
    def stream(
        self, messages: ChatMessages, *, model: Optional[str] = None
    ) -> AsyncIterator[str]:
        """Yield the completion as text fragments in arrival order."""

    async def aclose(self) -> None:
        return None


class OpenAICompletionClient(CompletionClient):
    """
    Completion client backed by the OpenAI Chat Completions API.

    Any error raised by the SDK is re-raised as CompletionError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = DEFAULT_RESPONSE_MODEL,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self._client: Any = None

    def _ensure_client(self) -> Any:
        if self._client is not None:
            return self._client

        from openai import AsyncOpenAI

        try:
            self._client = AsyncOpenAI(api_key=self.api_key)
        except Exception as e:
            raise CompletionError(f"Could not create OpenAI client: {e}", cause=e) from e
        return self._client

    async def complete(
        self,
        messages: ChatMessages,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        client = self._ensure_client()
        options: Dict[str, Any] = {}
        if max_tokens is not None:
            options["max_tokens"] = max_tokens
        if temperature is not None:
            options["temperature"] = temperature

        try:
            response = await client.chat.completions.create(
                model=model or self.default_model,
                messages=messages,
                stream=False,
                **options,
            )
        except Exception as e:
            logger.error(f"OpenAI completion failed: {e}")
            raise CompletionError(f"Completion request failed: {e}", cause=e) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def stream(
        self, messages: ChatMessages, *, model: Optional[str] = None
    ) -> AsyncIterator[str]:
        client = self._ensure_client()
        try:
            response_stream = await client.chat.completions.create(
                model=model or self.default_model,
                messages=messages,
                stream=True,
            )
            async for chunk in response_stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if isinstance(content, str) and content:
                    yield content
        except CompletionError:
            raise
        except Exception as e:
            logger.error(f"OpenAI completion stream failed: {e}")
            raise CompletionError(f"Completion stream failed: {e}", cause=e) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
