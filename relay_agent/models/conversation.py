"""
Conversation log models for a single voice call.

A call's conversation is an ordered list of turns. The first turn, when present,
is the system instructions; there is never more than one system turn. Everything
else is user and assistant turns in arrival order, stored durably as a JSON array
of {"role", "content"} objects.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class Role(str, Enum):
    """Speaker attributed to a turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """One message attributed to the system, the user or the assistant."""

    role: Role = Field(..., description="Who produced the turn")
    content: str = Field("", description="Text of the turn")

    def to_message(self) -> Dict[str, str]:
        """Return the turn as a chat-completion message dict."""
        return {"role": self.role.value, "content": self.content}


class ConversationLog(BaseModel):
    """Ordered, append-only sequence of turns for one call."""

    turns: List[Turn] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_system_turn(self):
        """Ensure the system turn, if any, is unique and first."""
        for index, turn in enumerate(self.turns):
            if turn.role == Role.SYSTEM and index != 0:
                raise ValueError("The system turn must be the first turn of the log")
        return self

    def is_empty(self) -> bool:
        return not self.turns

    def append(self, turn: Turn) -> None:
        """Append a turn, refusing a system turn anywhere but first."""
        if turn.role == Role.SYSTEM and self.turns:
            raise ValueError("The system turn must be the first turn of the log")
        self.turns.append(turn)

    def last_index(self, role: Role) -> int:
        """Index of the most recent turn with the given role, or -1."""
        for index in range(len(self.turns) - 1, -1, -1):
            if self.turns[index].role == role:
                return index
        return -1

    def last_turn(self, role: Role) -> Optional[Turn]:
        index = self.last_index(role)
        return self.turns[index] if index != -1 else None

    def copy_log(self) -> "ConversationLog":
        """Deep copy, so callers can work on a snapshot."""
        return ConversationLog(turns=[turn.model_copy() for turn in self.turns])

    def to_messages(self) -> List[Dict[str, str]]:
        return [turn.to_message() for turn in self.turns]

    def to_json(self) -> str:
        return json.dumps(self.to_messages())

    @classmethod
    def from_messages(cls, messages: Optional[List[Dict[str, Any]]]) -> "ConversationLog":
        """Build a log from stored {"role", "content"} dicts; None means empty."""
        if not messages:
            return cls()
        return cls(turns=[Turn(**message) for message in messages])

    @classmethod
    def from_json(cls, data: Optional[str]) -> "ConversationLog":
        if not data:
            return cls()
        return cls.from_messages(json.loads(data))
