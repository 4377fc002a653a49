"""
End-of-call summary of a coaching conversation.
"""

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from relay_agent.config.constants import (
    DEFAULT_PROMPT_TIMEZONE,
    DEFAULT_SUMMARY_MODEL,
    LOGGER_NAME,
)
from relay_agent.models.conversation import ConversationLog, Role
from relay_agent.services.completion_client import CompletionClient
from relay_agent.services.prompt_source import format_full_datetime
from relay_agent.services.session_store import SessionStore

logger = logging.getLogger(LOGGER_NAME)

SUMMARY_SYSTEM_PROMPT = """You are a factual summarizer of life coaching conversations.

Create a direct, factual summary using these categories:

**Goals**: List each goal mentioned by the client, numbered (1, 2, 3...)

**Progress**: State what the client reported they accomplished or tried

**Blockers**: List specific obstacles or challenges the client mentioned

**Trends**: Note any patterns the client described in their behavior

**Insights**: Record any realizations or learnings the client expressed

**Actions**: List specific next steps the client committed to

**Assessment**: Brief factual statement about the session

Be direct and factual. Avoid interpretation or creative language. Use bullet points where appropriate."""

NO_SUMMARY = "No summary available"


def render_transcript(log: ConversationLog) -> str:
    """Readable transcript of the user and assistant turns."""
    lines = [
        f"{'User' if turn.role == Role.USER else 'Coach'}: {turn.content}"
        for turn in log.turns
        if turn.role in (Role.USER, Role.ASSISTANT)
    ]
    return "\n\n".join(lines)


class ConversationSummarizer:
    def __init__(
        self,
        client: CompletionClient,
        store: SessionStore,
        model: str = DEFAULT_SUMMARY_MODEL,
        timezone: str = DEFAULT_PROMPT_TIMEZONE,
    ):
        self.client = client
        self.store = store
        self.model = model
        self.timezone = ZoneInfo(timezone)

    async def summarize(
        self, call_id: str, log: ConversationLog, started_at: datetime
    ) -> Optional[str]:
        """
        Summarize a finished call and attach the summary to its stored session.

        Failures are logged and swallowed: the call is already over and there is
        nobody left to report them to.

        Returns:
            The saved summary, or None if nothing was summarized
        """
        transcript = render_transcript(log)
        if not transcript:
            logger.info(f"No user/assistant messages found for call: {call_id}")
            return None

        local_start = started_at.astimezone(self.timezone)
        messages = [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Please summarize this life coaching conversation that took place on "
                    f"{format_full_datetime(local_start)}:\n\n{transcript}"
                ),
            },
        ]

        try:
            summary = await self.client.complete(
                messages, model=self.model, max_tokens=500, temperature=0.3
            )
            summary = summary.strip() or NO_SUMMARY
            await self.store.save_summary(call_id, summary)
        except Exception as e:
            logger.error(f"Error summarizing conversation for call {call_id}: {e}")
            return None

        logger.info(f"Summary saved for call: {call_id}")
        return summary
