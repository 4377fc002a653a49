"""
System prompt and welcome greeting for the coaching call.

Both texts are read from the prompts directory when the files exist, falling back
to built-in defaults. The system prompt is prefixed with the current date and time
in the coach's timezone so the model can refer to "today" and "tomorrow".
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo

from relay_agent.config.constants import (
    DEFAULT_PROMPT_TIMEZONE,
    LOGGER_NAME,
    SYSTEM_PROMPT_FILE,
    WELCOME_GREETING_FILE,
)

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_WELCOME_GREETING = "Hey, this is your coach. Is now a good time?"

DEFAULT_SYSTEM_PROMPT = """You are a life coach. Be positive and encouraging, but be succinct.

First, tell the user that you're going to ask them a few questions, and ask them to say "that's all" when they're done answering.
Ask the user the following questions, but not word for word:
- What are your wins for the day?
- What are you going to do differently tomorrow?
- What is motivating you right now?
- What are you grateful for?

Once the user has answered all the questions, recap their responses, and tell them you'll check in with them tomorrow.

This conversation is being translated to voice, so answer carefully. When you respond, please spell out all numbers, for example twenty not 20.
Do not include emojis in your responses. Do not include bullet points, asterisks, or special symbols."""


def format_full_datetime(moment: datetime) -> str:
    """Format a moment as e.g. 'Monday, October 19, 2026 at 7:05 PM'."""
    hour = moment.hour % 12 or 12
    time_str = f"{hour}:{moment.minute:02d} {'AM' if moment.hour < 12 else 'PM'}"
    date_str = f"{moment.strftime('%B')} {moment.day}, {moment.year}"
    return f"{moment.strftime('%A')}, {date_str} at {time_str}"


class PromptSource:
    """Supplies the system turn text and the welcome greeting."""

    def __init__(
        self,
        prompts_dir: Union[str, Path] = "prompts",
        timezone: str = DEFAULT_PROMPT_TIMEZONE,
        clock: Optional[Callable[[ZoneInfo], datetime]] = None,
    ):
        self.prompts_dir = Path(prompts_dir)
        self.timezone = ZoneInfo(timezone)
        self._clock = clock or (lambda tz: datetime.now(tz))

    def _read(self, relative_path: str, default: str) -> str:
        path = self.prompts_dir / relative_path
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            logger.debug(f"Prompt file not found, using built-in text: {path}")
            return default

    def welcome_greeting(self) -> str:
        return self._read(WELCOME_GREETING_FILE, DEFAULT_WELCOME_GREETING)

    def system_prompt(self) -> str:
        base_prompt = self._read(SYSTEM_PROMPT_FILE, DEFAULT_SYSTEM_PROMPT)
        now = self._clock(self.timezone)
        return f"Today is {format_full_datetime(now)}. {base_prompt}"
