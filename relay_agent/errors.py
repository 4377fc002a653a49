"""
Exception hierarchy for the relay agent.

External collaborators wrap their backend-specific failures (OpenAI SDK errors,
asyncpg errors) in one of these so the turn engine can handle every backend the
same way.
"""

from typing import Optional


class RelayAgentError(Exception):
    """Base exception for all relay agent errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class CompletionError(RelayAgentError):
    """Raised when the completion service fails to produce a reply."""


class StoreError(RelayAgentError):
    """Raised when the session store or user directory cannot be read or written."""
