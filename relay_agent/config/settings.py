"""
Environment-driven settings for the relay agent.

Values are read once from the process environment (optionally populated from a
.env file by the entry points) and collected into an immutable Settings object
that is handed to the components that need it.
"""

import os
from dataclasses import dataclass
from typing import Optional

from relay_agent.config.constants import (
    DEFAULT_CLASSIFIER_MODEL,
    DEFAULT_LOG_FILE,
    DEFAULT_NOT_DONE_WAIT_SECONDS,
    DEFAULT_PROMPT_TIMEZONE,
    DEFAULT_RESPONSE_MODEL,
    DEFAULT_SUMMARY_MODEL,
)

SESSION_STORE_MEMORY = "memory"
SESSION_STORE_POSTGRES = "postgres"


def _getenv_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _getenv_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the server and the turn engine."""

    host: str = "0.0.0.0"
    port: int = 8080
    public_domain: str = "localhost"
    openai_api_key: Optional[str] = None

    response_model: str = DEFAULT_RESPONSE_MODEL
    classifier_model: str = DEFAULT_CLASSIFIER_MODEL
    summary_model: str = DEFAULT_SUMMARY_MODEL
    stream_responses: bool = True
    not_done_wait_seconds: int = DEFAULT_NOT_DONE_WAIT_SECONDS
    aggregate_opening: bool = True
    summarize_on_close: bool = True

    session_store: str = SESSION_STORE_MEMORY
    prompts_dir: str = "prompts"
    prompt_timezone: str = DEFAULT_PROMPT_TIMEZONE

    log_level: str = "INFO"
    log_file: Optional[str] = DEFAULT_LOG_FILE

    @property
    def websocket_url(self) -> str:
        return f"wss://{self.public_domain}/ws"

    @staticmethod
    def from_env() -> "Settings":
        public_domain = _getenv_str(
            "PUBLIC_DOMAIN", _getenv_str("NGROK_URL", "localhost")
        )
        session_store = _getenv_str("SESSION_STORE", SESSION_STORE_MEMORY).lower()
        if session_store not in (SESSION_STORE_MEMORY, SESSION_STORE_POSTGRES):
            raise ValueError(
                f"SESSION_STORE must be '{SESSION_STORE_MEMORY}' or "
                f"'{SESSION_STORE_POSTGRES}', got '{session_store}'"
            )

        return Settings(
            host=_getenv_str("HOST", "0.0.0.0"),
            port=_getenv_int("PORT", 8080),
            public_domain=public_domain,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            response_model=_getenv_str("RESPONSE_MODEL", DEFAULT_RESPONSE_MODEL),
            classifier_model=_getenv_str("CLASSIFIER_MODEL", DEFAULT_CLASSIFIER_MODEL),
            summary_model=_getenv_str("SUMMARY_MODEL", DEFAULT_SUMMARY_MODEL),
            stream_responses=_getenv_bool("STREAM_RESPONSES", True),
            not_done_wait_seconds=max(
                0, _getenv_int("NOT_DONE_WAIT_SECONDS", DEFAULT_NOT_DONE_WAIT_SECONDS)
            ),
            aggregate_opening=_getenv_bool("AGGREGATE_OPENING", True),
            summarize_on_close=_getenv_bool("SUMMARIZE_ON_CLOSE", True),
            session_store=session_store,
            prompts_dir=_getenv_str("PROMPTS_DIR", "prompts"),
            prompt_timezone=_getenv_str("PROMPT_TIMEZONE", DEFAULT_PROMPT_TIMEZONE),
            log_level=_getenv_str("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE", DEFAULT_LOG_FILE).strip() or None,
        )
