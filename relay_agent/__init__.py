"""
Relay Agent - Voice coaching agent for Twilio ConversationRelay

This application answers phone calls through Twilio ConversationRelay and holds a
coaching conversation with the caller. ConversationRelay handles speech
recognition and synthesis; the agent receives transcribed utterances over a
WebSocket and replies with text generated by OpenAI chat models.

Architecture Overview:
- FastAPI server exposing the /twiml webhook and the /ws ConversationRelay endpoint
- A per-call turn engine that merges split utterances, waits briefly when the
  caller sounds unfinished, and cancels replies the caller has talked over
- Conversation logs persisted per call (in memory or PostgreSQL) and summarized
  when the call ends

Key Components:
- bot: Turn engine, reply generation and the log transformations
- config: Application-wide configuration, constants, and logging setup
- handlers: Message handlers for the ConversationRelay WebSocket protocol
- models: Conversation log, call session state and message schemas
- services: OpenAI client, session storage, prompts and a test relay client
- websocket_manager: Central handler for WebSocket connections and message routing

Getting Started:
1. Set up environment variables:
   - OPENAI_API_KEY: Your OpenAI API key
   - PUBLIC_DOMAIN: Public host name Twilio reaches this server on
   - PORT: Port to run the server on (default 8080)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the server:
   ```bash
   python -m relay_agent.main
   ```

3. Point the voice webhook of your Twilio number at https://your-domain/twiml
"""

# This file is intentionally left empty
# It makes the relay_agent directory a proper Python package
