"""
Services module for external integrations of the relay agent.

This module provides the clients and storage backends the turn engine talks to.
Each concern has an abstract interface with an in-process implementation for
development and tests and a production implementation.

Key components:
- completion_client: CompletionClient interface and the OpenAI chat completions
  implementation (whole and streamed replies).
- session_store / user_directory: Durable call sessions and caller records,
  in memory or in PostgreSQL.
- postgres: The shared asyncpg connection pool.
- prompt_source: System prompt and welcome greeting, read from the prompts
  directory and stamped with the current date.
- relay_client: A WebSocket client that plays the ConversationRelay side of a
  call, for local testing.

Usage examples:
```python
from relay_agent.services.relay_client import RelayClient

async def talk_to_agent():
    client = RelayClient("ws://localhost:8080/ws")
    if await client.connect():
        await client.send_setup()
        await client.send_prompt("I finished my report today")
        print(await client.receive_turn())
    await client.close()
```
"""

# Services module initialization
