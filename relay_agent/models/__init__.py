"""
Models module for data structures and state management in the relay agent.

This module provides the data models of the application: the conversation log
that is sent to the model and persisted, the live per-call session state, and
the ConversationRelay WebSocket message schemas.

Key components:
- conversation: The ordered, role-tagged ConversationLog with its invariants
  (a system turn may only come first) and JSON round-tripping for storage.
- session: CallSession, the cancellation handle of an in-flight reply, and the
  SessionRegistry of live calls.
- message_schemas: Pydantic models for validating inbound ConversationRelay
  messages and serializing outbound text tokens and error notices.

Usage examples:
```python
from relay_agent.models import ConversationLog, Role, Turn

log = ConversationLog()
log.append(Turn(role=Role.SYSTEM, content="You are a life coach."))
log.append(Turn(role=Role.USER, content="I walked the dog"))

from relay_agent.models.message_schemas import PromptMessage, partial_text

prompt = PromptMessage(type="prompt", voicePrompt="I walked the dog")
await websocket.send_text(partial_text("Great").model_dump_json())
```
"""

from relay_agent.models.conversation import ConversationLog, Role, Turn
from relay_agent.models.message_schemas import (
    BaseMessage,
    DtmfMessage,
    ErrorMessage,
    ErrorReportMessage,
    IncomingMessage,
    InterruptMessage,
    OutgoingMessage,
    PromptMessage,
    SetupMessage,
    TextTokenMessage,
)
from relay_agent.models.session import (
    CallSession,
    CancellationHandle,
    SessionRegistry,
    SessionState,
)
