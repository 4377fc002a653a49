"""Test doubles shared by the test modules."""

import asyncio
import json
from typing import List, Optional

from relay_agent.services.completion_client import CompletionClient


class ScriptedCompletionClient(CompletionClient):
    """
    Completion client that replays scripted answers.

    complete() pops the next entry of `responses` (an Exception entry is raised)
    and falls back to `default_response`. stream() pops the next script of
    `streams`; a script step is a text fragment, an asyncio.Event to wait on
    before continuing, or an Exception to raise.
    """

    def __init__(
        self,
        responses: Optional[list] = None,
        streams: Optional[List[list]] = None,
        default_response: str = "1",
        default_fragments: Optional[List[str]] = None,
    ):
        self.responses = list(responses or [])
        self.streams = list(streams or [])
        self.default_response = default_response
        self.default_fragments = default_fragments or ["Okay."]
        self.complete_calls: List[dict] = []
        self.stream_calls: List[dict] = []
        self.closed = False

    async def complete(self, messages, *, model=None, max_tokens=None, temperature=None):
        self.complete_calls.append(
            {
                "messages": messages,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        response = self.responses.pop(0) if self.responses else self.default_response
        if isinstance(response, Exception):
            raise response
        return response

    async def stream(self, messages, *, model=None):
        self.stream_calls.append({"messages": messages, "model": model})
        script = self.streams.pop(0) if self.streams else list(self.default_fragments)
        for step in script:
            if isinstance(step, asyncio.Event):
                await step.wait()
            elif isinstance(step, Exception):
                raise step
            else:
                yield step

    async def aclose(self):
        self.closed = True


def sent_messages(websocket) -> List[dict]:
    """Decode every text frame sent on a mocked WebSocket."""
    return [json.loads(c.args[0]) for c in websocket.send_text.call_args_list]


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Yield to the event loop until predicate() holds."""

    async def _poll():
        while not predicate():
            await asyncio.sleep(0)

    await asyncio.wait_for(_poll(), timeout)
