"""
Handlers module for Twilio ConversationRelay WebSocket messages.

Each handler validates one inbound message type with its pydantic model and
passes it on to the turn engine. All handlers share the signature
(message, websocket, call_id, engine), where call_id is the call SID bound to
the connection by its setup message.

Key components:
- session_handlers: Handles the setup message that creates the call's session.
- prompt_handlers: Handles transcribed user utterances (prompt) and barge-in
  (interrupt), which drive reply generation and log reconciliation.
- activity_handlers: Logs keypad digits (dtmf) and errors reported by
  ConversationRelay.

Usage examples:
```python
from relay_agent.handlers import prompt_handlers, session_handlers

session = await session_handlers.handle_setup(message, websocket, None, engine)
task = await prompt_handlers.handle_prompt(
    {"type": "prompt", "voicePrompt": "I finished the report"},
    websocket,
    session.call_id,
    engine,
)
```
"""

# Handlers module initialization
