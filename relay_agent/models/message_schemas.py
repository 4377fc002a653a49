"""
Pydantic models for the Twilio ConversationRelay WebSocket message schemas.

This module defines structured data models for the incoming and outgoing messages
exchanged with ConversationRelay, providing type validation and documentation.
"""

import logging
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from relay_agent.config.constants import DEFAULT_CALLER, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


# Base Models
class BaseMessage(BaseModel):
    """Base model for all WebSocket messages."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., description="Message type identifier")


# Inbound Messages
class SetupMessage(BaseMessage):
    """Model for the setup message sent once when the call connects."""

    type: Literal["setup"]
    callSid: str = Field(..., description="Twilio call SID identifying the call")
    sessionId: Optional[str] = Field(None, description="ConversationRelay session id")
    from_: Optional[str] = Field(None, alias="from", description="Caller number")
    to: Optional[str] = Field(None, description="Called number")
    phoneNumber: Optional[str] = Field(None, description="Explicit caller identity")

    @field_validator("callSid")
    def validate_call_sid(cls, v):
        """Validate that the call SID is not empty."""
        if not v.strip():
            raise ValueError("callSid cannot be empty")
        if not v.startswith("CA"):
            logger.warning(f"Call SID does not look like a Twilio call SID: {v}")
        return v

    @property
    def caller_identity(self) -> str:
        """Phone number used to look up the user, falling back to a shared default."""
        return self.phoneNumber or self.from_ or DEFAULT_CALLER


class PromptMessage(BaseMessage):
    """Model for a transcribed user utterance."""

    type: Literal["prompt"]
    voicePrompt: str = Field(..., description="Transcribed text of the utterance")
    lang: Optional[str] = Field(None, description="Language of the utterance")
    last: bool = Field(True, description="Whether this is the final transcript")


class InterruptMessage(BaseMessage):
    """Model for an interruption of the assistant's speech by the caller."""

    type: Literal["interrupt"]
    utteranceUntilInterrupt: str = Field(
        "", description="Assistant text played to the caller before the interruption"
    )
    durationUntilInterruptMs: Optional[int] = Field(
        None, description="Milliseconds of speech played before the interruption"
    )


class DtmfMessage(BaseMessage):
    """Model for a keypad digit pressed by the caller."""

    type: Literal["dtmf"]
    digit: str = Field(..., description="The pressed digit")

    @field_validator("digit")
    def validate_digit(cls, v):
        """Validate that the digit is a DTMF symbol."""
        if not v or v not in "0123456789*#ABCD":
            raise ValueError(f"Invalid DTMF digit: {v}")
        return v


class ErrorReportMessage(BaseMessage):
    """Model for an error reported by ConversationRelay."""

    type: Literal["error"]
    description: str = Field("", description="Description of the error")


# Outbound Messages
class TextTokenMessage(BaseMessage):
    """
    Model for assistant text sent to ConversationRelay for speech synthesis.

    last=False carries a partial fragment; last=True marks the end of the turn.
    """

    type: Literal["text"] = "text"
    token: str = Field(..., description="Text fragment to speak")
    last: bool = Field(..., description="Whether this fragment ends the turn")


class ErrorMessage(BaseMessage):
    """Model for an error notice sent to the caller's connection."""

    type: Literal["error"] = "error"
    message: str = Field(..., description="Human readable error description")


def partial_text(fragment: str) -> TextTokenMessage:
    return TextTokenMessage(token=fragment, last=False)


def end_of_turn(token: str = "") -> TextTokenMessage:
    return TextTokenMessage(token=token, last=True)


def error_notice(message: str) -> ErrorMessage:
    return ErrorMessage(message=message)


# Union type for all possible incoming messages
IncomingMessage = Union[
    SetupMessage,
    PromptMessage,
    InterruptMessage,
    DtmfMessage,
    ErrorReportMessage,
]

# Union type for all possible outgoing messages
OutgoingMessage = Union[
    TextTokenMessage,
    ErrorMessage,
]
